from flask import Blueprint, jsonify
from sqlalchemy import text
from sqlalchemy.exc import SQLAlchemyError
from countries_quiz import db
from countries_quiz.services.quiz.registry import sessions

main = Blueprint('main', __name__)

@main.route('/')
def index():
    return jsonify({
        'message': 'Welcome to the Countries Quiz server!',
        'endpoints': ['/health', '/api/countries', '/api/scores', '/api/quiz/sessions'],
    })

@main.route('/health')
def health():
    try:
        db.session.execute(text('SELECT 1'))
        database = 'ok'
    except SQLAlchemyError:
        db.session.rollback()
        database = 'unavailable'
    return jsonify({'status': 'ok', 'database': database, 'sessions': len(sessions)})
