# All API routes are in this one file
from flask import request, jsonify, Blueprint, current_app, g
from sqlalchemy.exc import IntegrityError
from . import db
from .auth import issue_token, login_required
from .models import User
from .schemas import DecodeRequest, EncodeRequest
from .services import decode_message, encode_message, message_history

# This line creates the 'api' object that __init__.py is looking for
api = Blueprint('api', __name__)


def _cipher():
    return current_app.extensions['message_cipher']


def _store():
    return current_app.extensions['record_store']


def _json_body():
    data = request.get_json(silent=True)
    return data if isinstance(data, dict) else {}


# Basic index and health endpoints for quick checks
@api.route('/', methods=['GET'])
def api_index():
    current_app.logger.debug('GET /api invoked for index')
    return jsonify({
        'name': 'AES Vault API',
        'version': 1,
        'endpoints': [
            'POST /api/users/register',
            'POST /api/users/login',
            'GET  /api/users',
            'POST /api/encrypt',
            'POST /api/decrypt',
            'GET  /api/messages',
            'GET  /api/health'
        ]
    }), 200


@api.route('/health', methods=['GET'])
def api_health():
    current_app.logger.debug('GET /api/health invoked')
    return jsonify({'status': 'ok'}), 200


# User endpoints (no token required)
@api.route('/users/register', methods=['POST'])
def register_user():
    current_app.logger.debug('POST /api/users/register invoked')
    data = _json_body()
    name = data.get('name')
    email = data.get('email')
    password = data.get('password')
    if not name or not email or not password:
        return jsonify({'message': 'All fields are required'}), 400

    email = str(email).strip()
    if db.session.execute(db.select(User).filter_by(email=email)).scalar_one_or_none():
        return jsonify({'message': 'User already exists'}), 400

    user = User(name=str(name).strip(), email=email)
    user.set_password(str(password))
    db.session.add(user)
    try:
        db.session.commit()
    except IntegrityError:
        # lost a race with a concurrent registration of the same email
        db.session.rollback()
        return jsonify({'message': 'User already exists'}), 400
    current_app.logger.info(f'Registered user {user.id}')
    return jsonify({'message': 'User registered successfully'}), 201


@api.route('/users/login', methods=['POST'])
def login_user():
    current_app.logger.debug('POST /api/users/login invoked')
    data = _json_body()
    email = data.get('email')
    password = data.get('password')
    if not email or not password:
        return jsonify({'message': 'Email and password are required'}), 400

    user = db.session.execute(
        db.select(User).filter_by(email=str(email).strip())
    ).scalar_one_or_none()
    if user is None or not user.check_password(str(password)):
        current_app.logger.warning('Login failed: invalid credentials')
        return jsonify({'message': 'Invalid credentials'}), 401

    return jsonify({'token': issue_token(user), 'user': user.to_dict()}), 200


@api.route('/users', methods=['GET'])
def list_users():
    current_app.logger.debug('GET /api/users invoked')
    users = db.session.execute(db.select(User).order_by(User.id)).scalars()
    return jsonify([user.to_dict() for user in users]), 200


# Message endpoints (bearer token required)
@api.route('/encrypt', methods=['POST'])
@login_required
def encrypt():
    current_app.logger.debug('POST /api/encrypt invoked')
    payload = EncodeRequest.from_json(_json_body())
    result = encode_message(_store(), _cipher(), g.current_user.id, payload)
    return jsonify(result.to_dict()), 200


@api.route('/decrypt', methods=['POST'])
@login_required
def decrypt():
    current_app.logger.debug('POST /api/decrypt invoked')
    payload = DecodeRequest.from_json(_json_body())
    result = decode_message(_store(), _cipher(), g.current_user.id, payload)
    return jsonify(result.to_dict()), 200


@api.route('/messages', methods=['GET'])
@login_required
def messages():
    current_app.logger.debug('GET /api/messages invoked')
    records = message_history(_store(), g.current_user.id, current_app.config['HISTORY_LIMIT'])
    return jsonify([record.to_dict() for record in records]), 200
