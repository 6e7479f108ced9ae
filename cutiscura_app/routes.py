"""
Cutiscura 라우트 블루프린트 모듈

기능별(대시보드, 제품, 퀴즈, 예약, 인증, API) Blueprint를 정의합니다.
각 라우트는 서비스를 호출해 조회 결과를 템플릿으로 렌더링하고,
실패하면 빈 데이터와 안내 메시지로 같은 페이지를 다시 렌더링합니다.
"""

import sqlite3
from datetime import datetime
from flask import (
    Blueprint, render_template, request, redirect, url_for,
    session, jsonify, current_app
)

from .models import DashboardStats, DatabaseError
from .utils import DatabaseManager, log_user_activity


# Blueprint 생성
main_bp = Blueprint('main', __name__)
products_bp = Blueprint('products', __name__)
quiz_bp = Blueprint('quiz', __name__)
appointments_bp = Blueprint('appointments', __name__)
auth_bp = Blueprint('auth', __name__)
api_bp = Blueprint('api', __name__)

QUERY_ERRORS = (DatabaseError, sqlite3.Error)


# =====================
# 대시보드
# =====================

@main_bp.route('/')
def index():
    """대시보드 페이지"""
    dashboard_service = current_app.dashboard_service
    try:
        db = DatabaseManager.get_connection()
        stats = dashboard_service.get_stats(db)
        routines = dashboard_service.get_recent_routines(
            db, current_app.config['DASHBOARD_ROUTINE_LIMIT']
        )
        return render_template(
            'index.html', title='Dashboard',
            stats=stats, routines=routines, error=None
        )
    except QUERY_ERRORS as e:
        current_app.logger.error(f"Error loading dashboard data: {e}")
        return render_template(
            'index.html', title='Dashboard',
            stats=DashboardStats(), routines=[],
            error='Unable to load stats from the database.'
        )


# =====================
# 제품 카탈로그
# =====================

@products_bp.route('')
def products():
    """제품 목록 페이지"""
    try:
        db = DatabaseManager.get_connection()
        product_list = current_app.product_service.list_products(db)
        return render_template('products.html', title='Products', products=product_list, error=None)
    except QUERY_ERRORS as e:
        current_app.logger.error(f"Error fetching products: {e}")
        return render_template(
            'products.html', title='Products', products=[],
            error='Unable to load products.'
        )


# =====================
# 피부 퀴즈
# =====================

@quiz_bp.route('')
def quiz():
    """퀴즈 페이지"""
    try:
        db = DatabaseManager.get_connection()
        questions = current_app.quiz_service.fetch_quiz_data(db)
        message = None
    except QUERY_ERRORS as e:
        current_app.logger.error(f"Error loading quiz: {e}")
        questions = []
        message = 'Unable to load quiz at the moment.'

    return render_template(
        'quiz.html', title='Skin Quiz',
        questions=questions, recommendations=None, score=None, message=message
    )


@quiz_bp.route('/submit', methods=['POST'])
def submit():
    """퀴즈 제출 및 추천 결과"""
    quiz_service = current_app.quiz_service
    user = session.get('user')
    user_id = user.get('id') if user else None

    try:
        db = DatabaseManager.get_connection()
        result = quiz_service.score_quiz(db, request.form, user_id)
        return render_template('quiz.html', title='Skin Quiz', **result.to_context())

    except QUERY_ERRORS as e:
        current_app.logger.error(f"Error submitting quiz: {e}")
        try:
            questions = quiz_service.fetch_quiz_data(DatabaseManager.get_connection())
        except QUERY_ERRORS:
            questions = []
        return render_template(
            'quiz.html', title='Skin Quiz',
            questions=questions, recommendations=None, score=None,
            message='Something went wrong calculating your results.'
        )


# =====================
# 예약 목록
# =====================

@appointments_bp.route('')
def appointments():
    """예약 목록 페이지"""
    appointment_service = current_app.appointment_service
    try:
        db = DatabaseManager.get_connection()
        return render_template(
            'appointments.html', title='Appointments',
            appointments=appointment_service.list_appointments(db),
            users=appointment_service.list_users(db),
            derms=appointment_service.list_dermatologists(db),
            message=None
        )
    except QUERY_ERRORS as e:
        current_app.logger.error(f"Error loading appointments: {e}")
        return render_template(
            'appointments.html', title='Appointments',
            appointments=[], users=[], derms=[],
            message='Unable to load appointments right now.'
        )


# =====================
# 인증
# =====================

@auth_bp.route('/login', methods=['GET'])
def login():
    """로그인 폼"""
    if session.get('user'):
        return redirect(url_for('main.index'))
    return render_template('login.html', title='Login', message=None)


@auth_bp.route('/login', methods=['POST'])
def login_submit():
    """로그인 처리"""
    email = request.form.get('email', '').strip()
    password = request.form.get('password', '')

    try:
        db = DatabaseManager.get_connection()
        user = current_app.user_service.authenticate_user(email, password, db)
    except QUERY_ERRORS as e:
        current_app.logger.error(f"Login error: {e}")
        return render_template('login.html', title='Login', message='Unable to login right now.')

    if user is None:
        log_user_activity('login_failed', {'email': email})
        return render_template('login.html', title='Login', message='Invalid email or password.')

    session.clear()
    session['user'] = user.to_dict()
    session.permanent = True
    log_user_activity('login', {'user_id': user.id})
    return redirect(url_for('main.index'))


@auth_bp.route('/logout', methods=['POST'])
def logout():
    """로그아웃"""
    user = session.get('user')
    session.clear()
    log_user_activity('logout', {'user_id': user.get('id') if user else None})
    return redirect(url_for('auth.login'))


# =====================
# API 라우트
# =====================

@api_bp.route('/health')
def health_check():
    """헬스 체크 API"""
    try:
        db = DatabaseManager.get_connection()
        db.execute('SELECT 1').fetchone()

        return jsonify({
            'status': 'healthy',
            'timestamp': datetime.now().isoformat(),
            'database': 'connected'
        })

    except sqlite3.Error as e:
        current_app.logger.error(f"Health check failed: {e}")
        return jsonify({
            'status': 'unhealthy',
            'error': str(e),
            'timestamp': datetime.now().isoformat()
        }), 500
