# nocram/routes/__init__.py
from datetime import datetime, timezone

from flask import Blueprint

bp = Blueprint('main', __name__)


@bp.route('/health')
def health():
    return {"status": "ok", "timestamp": datetime.now(timezone.utc).isoformat()}, 200
