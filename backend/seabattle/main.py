from flask import Blueprint, request, jsonify, current_app
from flask_login import login_user, logout_user, login_required, current_user
from seabattle.protocol import Credentials
from seabattle.services.games.errors import GameError

main = Blueprint('main', __name__)


def _accounts():
    return current_app.extensions['seabattle'].accounts


@main.route('/')
def index():
    return jsonify({'message': 'Welcome to the SeaBattle game server!'})


@main.route('/register', methods=['POST', 'OPTIONS'])
def register():
    if request.method == 'OPTIONS':
        return jsonify({'status': 'ok'}), 200
    try:
        creds = Credentials.parse(request.get_json(silent=True) or {})
        user = _accounts().register(creds.name, creds.password)
    except GameError as exc:
        return jsonify({"success": False, "message": str(exc), "code": exc.code}), 400
    login_user(user)
    return jsonify({"success": True, "user": user.to_dict()}), 201


@main.route('/login', methods=['POST', 'OPTIONS'])
def login():
    if request.method == 'OPTIONS':
        return jsonify({'status': 'ok'}), 200
    try:
        creds = Credentials.parse(request.get_json(silent=True) or {})
        user = _accounts().authenticate(creds.name, creds.password)
    except GameError as exc:
        return jsonify({"success": False, "message": str(exc), "code": exc.code}), 401
    login_user(user)
    return jsonify({"success": True, "user": user.to_dict()})


@main.route('/check_login', methods=['GET'])
@login_required
def check_login():
    return jsonify({"success": True, "user": current_user.to_dict()})


@main.route('/logout', methods=['POST'])
@login_required
def logout():
    logout_user()
    return jsonify({"success": True})


@main.route('/winners')
def winners():
    return jsonify(_accounts().winners())
