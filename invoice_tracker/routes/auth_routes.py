from flask import Blueprint, current_app, jsonify
from flask_login import current_user, login_required, login_user, logout_user
from werkzeug.security import check_password_hash

from invoice_tracker import limiter
from invoice_tracker.forms import LoginForm
from invoice_tracker.models import User

auth = Blueprint("auth", __name__)


def _user_payload(user):
    return {"id": user.id, "email": user.email, "name": user.full_name}


@auth.route("/login", methods=["POST"])
@limiter.limit("5 per minute")
def login():
    """Authenticate a user and start their session."""
    form = LoginForm()
    if not form.validate_on_submit():
        return jsonify({"errors": form.errors}), 400

    user = User.query.filter_by(email=form.email.data.strip().lower()).first()
    if not user or not check_password_hash(user.password, form.password.data):
        return jsonify({"error": "Please check your login details and try again."}), 401
    if not user.active:
        return jsonify({"error": "Account is not active."}), 403

    login_user(user)
    current_app.logger.info("User %s logged in", user.id)
    return jsonify({"user": _user_payload(user)})


@auth.route("/logout")
@login_required
def logout():
    """Log the current user out."""
    user_id = current_user.id
    logout_user()
    current_app.logger.info("User %s logged out", user_id)
    return jsonify({"status": "logged out"})


@auth.route("/me")
@login_required
def me():
    return jsonify({"user": _user_payload(current_user)})
