from flask import Blueprint, request, jsonify
from flask_login import login_user, logout_user, login_required, current_user
from models import User

auth_bp = Blueprint('auth', __name__)


def _credentials():
    """Username/password from a JSON body or a form post"""
    data = request.get_json(silent=True) if request.is_json else None
    source = data if isinstance(data, dict) else request.form
    return (source.get('username') or '').strip(), source.get('password') or ''


@auth_bp.route('/login', methods=['POST'])
def login():
    """Start a session"""
    username, password = _credentials()
    user = User.query.filter_by(username=username).first()
    if user and user.check_password(password) and user.active:
        login_user(user)
        return jsonify(authenticated=True, username=user.username)
    return jsonify(authenticated=False, error='Invalid credentials or account disabled'), 401


@auth_bp.route('/logout', methods=['POST'])
@login_required
def logout():
    """End the session"""
    logout_user()
    return jsonify(authenticated=False)


@auth_bp.route('/session')
def session_status():
    return jsonify(authenticated=bool(current_user.is_authenticated))
