# run.py
import os
from dotenv import load_dotenv

basedir = os.path.abspath(os.path.dirname(__file__))
# load the .env next to this file before the app reads its configuration
load_dotenv(dotenv_path=os.path.join(basedir, '.env'))

from petsynth import create_app

app = create_app()

if __name__ == '__main__':
    host = os.getenv('HOST', '127.0.0.1')
    port = int(os.getenv('PORT', 8787))
    debug = app.config.get('DEBUG', False)
    app.run(host=host, port=port, debug=debug)
