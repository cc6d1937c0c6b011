# petsynth/services/generation_log_service.py
import logging
from typing import Optional

from petsynth.models import db, Generation
from petsynth.services.text_generation_service import Usage


def save_generation_record(user_id: str, prompt: str, model: str, latency_ms: int,
                           usage: Optional[Usage] = None) -> Generation:
    """
    Appends one telemetry row for a text-generation call.
    Token counts and cost stay NULL when the provider reported no usage (mock).
    """
    record = Generation(
        user_id=user_id,
        prompt=prompt,
        model=model,
        input_tokens=usage.input_tokens if usage else None,
        output_tokens=usage.output_tokens if usage else None,
        cost_usd=usage.cost_usd if usage else None,
        latency_ms=latency_ms,
    )
    db.session.add(record)
    db.session.commit()
    logging.info(f"Generation recorded (user: {user_id}, model: {model}, latency: {latency_ms}ms)")
    return record
