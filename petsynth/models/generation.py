# petsynth/models/generation.py
from petsynth.models.db import db, new_id
from petsynth.utils.datetime_utils import now_ms


class Generation(db.Model):
    """Append-only telemetry for one text-generation call."""
    __tablename__ = 'generations'

    id = db.Column(db.String(36), primary_key=True, default=new_id)
    user_id = db.Column(db.String(36), db.ForeignKey('users.id'), nullable=False, index=True)
    prompt = db.Column(db.Text)
    model = db.Column(db.String(100))
    input_tokens = db.Column(db.Integer, nullable=True)
    output_tokens = db.Column(db.Integer, nullable=True)
    cost_usd = db.Column(db.Float, nullable=True)
    latency_ms = db.Column(db.Integer)
    created_at = db.Column(db.BigInteger, nullable=False, default=now_ms, index=True)

    def __repr__(self):
        return f'<Generation {self.id} model={self.model} by User {self.user_id}>'
