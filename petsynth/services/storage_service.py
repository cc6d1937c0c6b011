# petsynth/services/storage_service.py
import logging
import os
from typing import Optional

import requests
from flask import Flask
from werkzeug.utils import secure_filename


class LocalImageStorage:
    """
    Persists generated images to the local asset directory.
    Files written here are served by the app under PUBLIC_IMAGE_PREFIX.
    """

    def __init__(self, session: Optional[requests.Session] = None):
        """
        The asset directory is set in init_app. A session can be injected so
        downloads can be exercised without the network.
        """
        self.asset_dir = None
        self.public_prefix = '/images/pets'
        self.timeout = 25
        self.session = session or requests.Session()

    def init_app(self, app: Flask):
        """
        Reads IMAGE_ASSET_DIR and PUBLIC_IMAGE_PREFIX from the app config.

        :param app: Flask application object
        """
        self.asset_dir = app.config.get('IMAGE_ASSET_DIR')
        if not self.asset_dir:
            raise ValueError("IMAGE_ASSET_DIR must be configured.")
        self.public_prefix = app.config.get('PUBLIC_IMAGE_PREFIX', self.public_prefix).rstrip('/')
        self.timeout = app.config.get('PROVIDER_TIMEOUT_SECONDS', self.timeout)
        logging.info(f"LocalImageStorage: images are stored in {self.asset_dir}")

    def download_and_save_image(self, image_url: str, filename: str) -> str:
        """
        Fetches an image and writes it to the asset directory.

        :param image_url: temporary URL returned by an image provider
        :param filename: target file name, e.g. 'pet-1.png'
        :return: public path of the saved file, e.g. '/images/pets/pet-1.png'
        """
        if not self.asset_dir:
            raise RuntimeError("LocalImageStorage has not been initialized. Call init_app first.")

        safe_name = secure_filename(filename)
        if not safe_name:
            raise ValueError(f"'{filename}' is not a usable image file name.")

        response = self.session.get(image_url, timeout=self.timeout)
        response.raise_for_status()

        os.makedirs(self.asset_dir, exist_ok=True)
        save_path = os.path.join(self.asset_dir, safe_name)
        with open(save_path, 'wb') as f:
            f.write(response.content)

        logging.info(f"Saved image {safe_name} ({len(response.content)} bytes)")
        return f"{self.public_prefix}/{safe_name}"


def generate_image_filename(stem: str, extension: str = 'png') -> str:
    """'pet-1' -> 'pet-1.png'"""
    return f"{stem}.{extension}"
