from flask import Blueprint, current_app, jsonify

main = Blueprint('main', __name__)


@main.route('/')
def index():
    return jsonify({'message': 'GuessMates Country backend is running!'})


@main.route('/health')
def health():
    stats = current_app.extensions['guessmates'].stats()
    return jsonify({'status': 'ok', **stats})
