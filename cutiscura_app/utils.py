"""
Cutiscura 유틸리티 모듈

데이터베이스 연결/초기화 관리, 가격 포맷, 사용자 활동 로깅 등
공통 기능을 제공합니다.
"""

import sqlite3
import logging
from pathlib import Path
from typing import Optional, Dict, Any, Iterable
from datetime import datetime

from flask import request, current_app, g

from .models import DatabaseError


class DatabaseManager:
    """
    데이터베이스 관리 클래스

    요청별 연결, 스키마/샘플 데이터 적용, 쿼리 실행 등을 관리합니다.
    """

    def __init__(self, database_path: str):
        self.database_path = database_path
        self.logger = logging.getLogger(__name__)

    @staticmethod
    def get_connection() -> sqlite3.Connection:
        """현재 요청의 데이터베이스 연결 가져오기"""
        if 'db' not in g:
            g.db = sqlite3.connect(
                current_app.config['DATABASE'],
                detect_types=sqlite3.PARSE_DECLTYPES
            )
            g.db.row_factory = sqlite3.Row
        return g.db

    @staticmethod
    def close_connection(e=None):
        """요청 종료 시 연결 닫기"""
        db = g.pop('db', None)
        if db is not None:
            db.close()

    def _connect(self) -> sqlite3.Connection:
        # Flask 컨텍스트 밖에서도 쓸 수 있는 직접 연결
        db = sqlite3.connect(self.database_path)
        db.row_factory = sqlite3.Row
        return db

    def run_script(self, script_path: str):
        """
        SQL 스크립트 파일 실행

        Args:
            script_path (str): 실행할 .sql 파일 경로

        Raises:
            DatabaseError: 파일이 없거나 실행에 실패한 경우
        """
        path = Path(script_path)
        if not path.exists():
            raise DatabaseError(f"SQL 스크립트를 찾을 수 없습니다: {path}")

        db = self._connect()
        try:
            with open(path, 'r', encoding='utf-8') as f:
                db.executescript(f.read())
            db.commit()
        except sqlite3.Error as e:
            self.logger.error(f"SQL 스크립트 실행 실패 ({path.name}): {e}")
            raise DatabaseError(f"SQL 스크립트 실행 실패: {str(e)}")
        finally:
            db.close()

    def init_database(self, schema_path: str):
        """스키마 적용 (CREATE TABLE IF NOT EXISTS)"""
        self.run_script(schema_path)
        self.logger.info("데이터베이스 스키마 적용 완료")

    def seed_database(self, seed_path: str):
        """샘플 데이터 적재 (INSERT OR IGNORE)"""
        self.run_script(seed_path)
        self.logger.info("샘플 데이터 적재 완료")

    def drop_tables(self):
        """모든 테이블 삭제"""
        db = self._connect()
        try:
            tables = db.execute(
                "SELECT name FROM sqlite_master WHERE type='table' AND name NOT LIKE 'sqlite_%'"
            ).fetchall()

            db.execute("PRAGMA foreign_keys = OFF")
            for table in tables:
                db.execute(f"DROP TABLE IF EXISTS {table['name']}")

            db.commit()
            self.logger.info("모든 테이블 삭제 완료")

        except sqlite3.Error as e:
            self.logger.error(f"테이블 삭제 실패: {e}")
            raise DatabaseError(f"테이블 삭제 실패: {str(e)}")
        finally:
            db.close()

    @staticmethod
    def query(db: sqlite3.Connection, sql: str, params: Iterable = ()) -> list:
        """
        매개변수화된 쿼리 실행 후 전체 행 반환

        Args:
            db: 데이터베이스 연결
            sql (str): SQL 쿼리
            params: 쿼리 매개변수

        Returns:
            list: sqlite3.Row 목록

        Raises:
            DatabaseError: 쿼리 실행 실패 시
        """
        try:
            return db.execute(sql, tuple(params)).fetchall()
        except sqlite3.Error as e:
            logging.getLogger(__name__).error(f"쿼리 실행 실패: {e}")
            raise DatabaseError(f"쿼리 실행 실패: {str(e)}")

    @staticmethod
    def query_one(db: sqlite3.Connection, sql: str, params: Iterable = ()) -> Optional[sqlite3.Row]:
        """단일 행 조회 (없으면 None)"""
        rows = DatabaseManager.query(db, sql, params)
        return rows[0] if rows else None


# 유틸리티 함수들
def placeholders(values) -> str:
    """IN 절용 ? 자리표시자 문자열 생성"""
    return ','.join('?' for _ in values)


def format_price(value) -> str:
    """가격을 표시용 문자열로 변환"""
    if value is None or value == '':
        return '-'
    try:
        return f"${float(value):,.2f}"
    except (TypeError, ValueError):
        return str(value)


def get_client_ip() -> str:
    """클라이언트 IP 주소 가져오기"""
    return request.environ.get('HTTP_X_FORWARDED_FOR', request.remote_addr)


def log_user_activity(activity: str, details: Dict[str, Any] = None):
    """사용자 활동 로깅"""
    log_entry = {
        'timestamp': datetime.now().isoformat(),
        'activity': activity,
        'ip_address': get_client_ip(),
        'user_agent': request.headers.get('User-Agent', ''),
        'details': details or {}
    }
    current_app.logger.info(f"USER_ACTIVITY: {log_entry}")
