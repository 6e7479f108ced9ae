"""
Cutiscura 애플리케이션 팩토리 모듈

Flask 애플리케이션 인스턴스를 생성하고 구성요소들을 초기화합니다.
Application Factory 패턴을 사용하여 테스트와 배포 환경에서의 유연성을 제공합니다.
"""

import os
import logging
from flask import Flask, session


def create_app(config_name=None, test_config=None):
    """
    Flask 애플리케이션을 생성하고 설정하는 팩토리 함수

    Args:
        config_name (str): 설정 환경 이름 ('development', 'production', 'testing')
        test_config (dict): 설정 클래스 위에 덮어쓸 값 (테스트용)

    Returns:
        Flask: 구성된 Flask 애플리케이션 인스턴스
    """
    # Flask 애플리케이션 생성 (템플릿 및 정적 파일 경로 설정)
    template_dir = os.path.join(os.path.dirname(os.path.dirname(__file__)), 'templates')
    static_dir = os.path.join(os.path.dirname(os.path.dirname(__file__)), 'static')

    app = Flask(__name__,
                template_folder=template_dir,
                static_folder=static_dir)

    # 설정 로드
    from .config import get_config, validate_config
    config_class = get_config(config_name)
    app.config.from_object(config_class)
    if test_config:
        app.config.from_mapping(test_config)

    # 로깅 설정
    setup_logging(app)

    config_class.init_app(app)
    validate_config(app)

    # 데이터베이스 초기화 (스키마는 항상, 샘플 데이터는 설정에 따라)
    from .utils import DatabaseManager
    from .models import DatabaseError
    db_manager = DatabaseManager(app.config['DATABASE'])
    try:
        db_manager.init_database(app.config['SCHEMA_FILE'])
        if app.config.get('SEED_ON_INIT'):
            db_manager.seed_database(app.config['SEED_FILE'])
        app.logger.info("데이터베이스 초기화 완료")
    except DatabaseError as e:
        app.logger.warning(f"데이터베이스 초기화 실패: {e}")

    # 요청 종료 시 연결 정리
    app.teardown_appcontext(DatabaseManager.close_connection)

    # 서비스 초기화
    initialize_services(app)

    # 블루프린트 등록
    register_blueprints(app)

    # 템플릿 필터 등록
    register_template_filters(app)

    # 에러 핸들러 등록
    register_error_handlers(app)

    # CLI 명령어 등록
    register_cli_commands(app)

    app.logger.info(f"Cutiscura application created with config: {config_class.__name__}")

    return app


def setup_logging(app):
    """로깅 설정"""
    if not app.debug and not app.testing:
        # 프로덕션 로깅 설정
        log_file = app.config.get('LOG_FILE', 'logs/cutiscura.log')
        log_dir = os.path.dirname(log_file)
        if log_dir:
            os.makedirs(log_dir, exist_ok=True)

        file_handler = logging.FileHandler(log_file)
        file_handler.setFormatter(logging.Formatter(
            '%(asctime)s %(levelname)s: %(message)s [in %(pathname)s:%(lineno)d]'
        ))
        file_handler.setLevel(logging.INFO)
        app.logger.addHandler(file_handler)

    app.logger.setLevel(app.config.get('LOG_LEVEL', 'INFO'))


def initialize_services(app):
    """애플리케이션 서비스 초기화"""
    from .services import (
        DashboardService, ProductService, QuizService,
        AppointmentService, UserService
    )

    app.dashboard_service = DashboardService()
    app.product_service = ProductService()
    app.quiz_service = QuizService()
    app.appointment_service = AppointmentService()
    app.user_service = UserService()


def register_blueprints(app):
    """블루프린트 등록"""
    from .routes import (
        main_bp, products_bp, quiz_bp,
        appointments_bp, auth_bp, api_bp
    )

    # URL 접두사 없음 (/, /login, /logout)
    app.register_blueprint(main_bp)
    app.register_blueprint(auth_bp)

    # 기능별 블루프린트
    app.register_blueprint(products_bp, url_prefix='/products')
    app.register_blueprint(quiz_bp, url_prefix='/quiz')
    app.register_blueprint(appointments_bp, url_prefix='/appointments')
    app.register_blueprint(api_bp, url_prefix='/api')


def register_template_filters(app):
    """Jinja2 템플릿 필터 등록"""
    from .utils import format_price
    from .models import SessionUser

    app.add_template_filter(format_price, 'price')

    @app.context_processor
    def inject_current_user():
        """모든 템플릿에서 current_user 사용"""
        return {'current_user': SessionUser.from_session(session.get('user'))}


def register_error_handlers(app):
    """에러 핸들러 등록"""
    from flask import jsonify, render_template, request

    @app.errorhandler(404)
    def not_found_error(error):
        if request.is_json:
            return jsonify({'error': 'Resource not found'}), 404
        return render_template('errors/404.html', title='Not Found'), 404

    @app.errorhandler(500)
    def internal_error(error):
        app.logger.error(f'Server Error: {error}')
        if request.is_json:
            return jsonify({'error': 'Internal server error'}), 500
        return render_template('errors/500.html', title='Server Error'), 500


def register_cli_commands(app):
    """CLI 명령어 등록"""
    import click
    from .utils import DatabaseManager
    from .models import ValidationError

    @app.cli.command('init-db')
    @click.option('--drop', is_flag=True, help='Drop existing tables')
    @click.option('--seed', is_flag=True, help='Load sample data')
    def init_db_command(drop, seed):
        """데이터베이스 초기화"""
        db_manager = DatabaseManager(app.config['DATABASE'])

        if drop:
            db_manager.drop_tables()
            click.echo('Dropped existing tables.')

        db_manager.init_database(app.config['SCHEMA_FILE'])
        click.echo('Initialized the database.')

        if seed:
            db_manager.seed_database(app.config['SEED_FILE'])
            click.echo('Loaded sample data.')

    @app.cli.command('create-user')
    @click.argument('name')
    @click.argument('email')
    @click.argument('password')
    @click.option('--skin-type', type=int, default=None, help='skin_type.type_id')
    @click.option('--hashed', is_flag=True, help='Store a Werkzeug password hash')
    def create_user_command(name, email, password, skin_type, hashed):
        """사용자 생성"""
        db = DatabaseManager.get_connection()
        try:
            user_id = app.user_service.create_user(
                name, email, password, db, type_id=skin_type, hashed=hashed
            )
        except ValidationError as e:
            raise click.ClickException(str(e))
        click.echo(f'Created user {user_id} ({email}).')
