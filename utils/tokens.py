import datetime

import jwt
from flask import current_app, g


def get_jwt_token(user_data, hours=None):
    """Generate JWT token with user payload"""
    if not user_data:
        raise ValueError("User data must be provided to generate JWT token")

    hours = hours or current_app.config.get("ADMIN_TOKEN_HOURS", 12)
    expiration = datetime.datetime.now(datetime.timezone.utc) + datetime.timedelta(hours=hours)
    payload = {"exp": expiration, **user_data}

    return jwt.encode(payload, current_app.config["SECRET_KEY"], algorithm="HS256")


def decode_jwt(token):
    """Decode and validate JWT token and store user in `g`."""
    try:
        payload = jwt.decode(token, current_app.config["SECRET_KEY"], algorithms=["HS256"])
    except jwt.ExpiredSignatureError:
        current_app.logger.info("Rejected expired admin token")
        return None
    except jwt.InvalidTokenError:
        current_app.logger.warning("Rejected invalid admin token")
        return None

    g.user = payload
    return payload
