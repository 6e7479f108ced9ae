"""
Cutiscura 애플리케이션 설정 관리 모듈

환경별 설정(개발/프로덕션/테스트)을 클래스 계층으로 관리합니다.
"""

import os
import secrets
from pathlib import Path
from datetime import timedelta


BASE_DIR = os.path.dirname(os.path.dirname(__file__))

DEFAULT_SECRET = 'cutiscura-secret'


class BaseConfig:
    """기본 설정 클래스"""

    # 보안 설정
    SECRET_KEY = os.environ.get('SESSION_SECRET') or secrets.token_hex(32)

    # 데이터베이스 설정
    DATABASE = os.environ.get('DATABASE_PATH') or os.path.join(BASE_DIR, 'instance', 'cutiscura.sqlite')
    SCHEMA_FILE = os.path.join(BASE_DIR, 'schema.sql')
    SEED_FILE = os.path.join(BASE_DIR, 'seed.sql')
    SEED_ON_INIT = False

    # 세션 설정 (8시간 유지)
    PERMANENT_SESSION_LIFETIME = timedelta(hours=8)
    SESSION_COOKIE_SECURE = False
    SESSION_COOKIE_HTTPONLY = True
    SESSION_COOKIE_SAMESITE = 'Lax'

    # 서버 설정
    PORT = int(os.environ.get('PORT', 3000))

    # 로깅 설정
    LOG_LEVEL = 'INFO'
    LOG_FILE = 'logs/cutiscura.log'

    # 대시보드 설정
    DASHBOARD_ROUTINE_LIMIT = 6

    @staticmethod
    def init_app(app):
        """애플리케이션별 초기화"""
        # 인스턴스(DB) 폴더 생성
        database = app.config.get('DATABASE')
        if database and database != ':memory:':
            Path(database).parent.mkdir(parents=True, exist_ok=True)


class DevelopmentConfig(BaseConfig):
    """개발 환경 설정"""

    DEBUG = True
    TESTING = False

    # 개발용 샘플 데이터 자동 적재
    SEED_ON_INIT = True

    LOG_LEVEL = 'DEBUG'

    @staticmethod
    def init_app(app):
        BaseConfig.init_app(app)
        app.logger.info("Application started in DEVELOPMENT mode")


class ProductionConfig(BaseConfig):
    """프로덕션 환경 설정"""

    DEBUG = False
    TESTING = False

    # 강화된 보안 설정
    SECRET_KEY = os.environ.get('SESSION_SECRET')
    SESSION_COOKIE_SECURE = True
    SESSION_COOKIE_SAMESITE = 'Strict'

    SECURITY_HEADERS = {
        'X-Content-Type-Options': 'nosniff',
        'X-Frame-Options': 'DENY',
        'Referrer-Policy': 'same-origin'
    }

    @staticmethod
    def init_app(app):
        BaseConfig.init_app(app)

        # 프로덕션 보안 검증
        if not app.config['SECRET_KEY']:
            raise ValueError("SESSION_SECRET must be set in production environment")

        if app.config['SECRET_KEY'] == DEFAULT_SECRET:
            raise ValueError("Default SESSION_SECRET detected in production")

        @app.after_request
        def set_security_headers(response):
            for header, value in ProductionConfig.SECURITY_HEADERS.items():
                response.headers[header] = value
            return response

        app.logger.info("Application started in PRODUCTION mode")


class TestingConfig(BaseConfig):
    """테스트 환경 설정"""

    DEBUG = False
    TESTING = True

    SECRET_KEY = 'test-secret-key'
    SEED_ON_INIT = True

    @staticmethod
    def init_app(app):
        BaseConfig.init_app(app)
        app.logger.info("Application started in TESTING mode")


# 설정 딕셔너리
config = {
    'development': DevelopmentConfig,
    'production': ProductionConfig,
    'testing': TestingConfig,
    'default': DevelopmentConfig
}


def get_config(config_name=None):
    """
    설정 클래스를 반환합니다.

    Args:
        config_name (str): 설정 이름 ('development', 'production', 'testing')

    Returns:
        Config: 설정 클래스 객체
    """
    if config_name is None:
        config_name = os.environ.get('FLASK_ENV', 'development')

    return config.get(config_name, config['default'])


def validate_config(app):
    """
    애플리케이션 설정을 검증합니다.

    Args:
        app: Flask 애플리케이션 인스턴스

    Raises:
        ValueError: 필수 설정이 없거나 스키마 파일이 없는 경우
    """
    required_settings = ['SECRET_KEY', 'DATABASE', 'SCHEMA_FILE']

    for setting in required_settings:
        if not app.config.get(setting):
            raise ValueError(f"Required setting '{setting}' is not configured")

    if not Path(app.config['SCHEMA_FILE']).exists():
        raise ValueError(f"Schema file not found: {app.config['SCHEMA_FILE']}")

    seed_file = app.config.get('SEED_FILE')
    if app.config.get('SEED_ON_INIT') and (not seed_file or not Path(seed_file).exists()):
        app.logger.warning(f"Seed file not found: {seed_file}")
