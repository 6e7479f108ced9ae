"""
Cutiscura 비즈니스 로직 서비스 레이어

대시보드 통계, 제품 카탈로그, 퀴즈 채점/추천, 예약 목록, 사용자 인증 등
라우트에서 사용하는 조회 로직을 담당합니다.
"""

import hmac
import sqlite3
import logging
from typing import Dict, List, Optional, Any

from werkzeug.security import check_password_hash, generate_password_hash

from .models import (
    SessionUser, Product, RoutineSummary, DashboardStats,
    QuizOption, QuizQuestion, Recommendation, QuizResult, Appointment,
    ValidationError, DatabaseError
)
from .utils import DatabaseManager, placeholders


EMPTY_SUBMISSION_MESSAGE = 'Please answer all questions before submitting.'
NO_RECOMMENDATION_MESSAGE = 'No recommendations found for this score.'


class DashboardService:
    """
    대시보드 서비스

    제품/사용자/루틴 수와 최근 루틴 목록을 조회합니다.
    """

    def __init__(self):
        self.logger = logging.getLogger(__name__)

    def get_stats(self, db) -> DashboardStats:
        """제품, 사용자, 루틴 개수 조회"""
        counts = {}
        for key, table in (('products', 'product'), ('users', 'users'), ('routines', 'routines')):
            row = DatabaseManager.query_one(db, f'SELECT COUNT(*) AS count FROM {table}')
            counts[key] = row['count'] if row else 0
        return DashboardStats(**counts)

    def get_recent_routines(self, db, limit: int = 6) -> List[RoutineSummary]:
        """
        루틴 요약 목록 조회

        각 루틴의 제품 이름을 단계 순서대로 ', '로 이어 붙이며,
        제품이 없는 루틴은 'Custom blend'로 표시합니다.

        Args:
            db: 데이터베이스 연결
            limit (int): 최대 루틴 수

        Returns:
            List[RoutineSummary]: routine_id 순 루틴 요약
        """
        routines = DatabaseManager.query(
            db,
            """
            SELECT r.routine_id, r.routine_name, r.time_of_day, u.name AS user_name
            FROM routines r
            JOIN users u ON r.user_id = u.user_id
            ORDER BY r.routine_id
            LIMIT ?
            """,
            (limit,)
        )
        if not routines:
            return []

        routine_ids = [row['routine_id'] for row in routines]
        steps = DatabaseManager.query(
            db,
            f"""
            SELECT rp.routine_id, p.name
            FROM routine_product rp
            JOIN product p ON rp.product_id = p.product_id
            WHERE rp.routine_id IN ({placeholders(routine_ids)})
            ORDER BY rp.routine_id, rp.step_order
            """,
            routine_ids
        )

        products_by_routine: Dict[int, List[str]] = {}
        for step in steps:
            products_by_routine.setdefault(step['routine_id'], []).append(step['name'])

        return [
            RoutineSummary(
                row['routine_id'],
                row['routine_name'],
                row['time_of_day'],
                row['user_name'],
                ', '.join(products_by_routine.get(row['routine_id'], [])) or 'Custom blend'
            )
            for row in routines
        ]


class ProductService:
    """제품 카탈로그 서비스"""

    def __init__(self):
        self.logger = logging.getLogger(__name__)

    def list_products(self, db) -> List[Product]:
        """카테고리/피부 타입/고민 이름을 포함한 전체 제품 목록 (이름순)"""
        rows = DatabaseManager.query(
            db,
            """
            SELECT p.product_id, p.name, p.brand, p.price,
                   c.category_name, st.type_name, sc.concern_name
            FROM product p
            LEFT JOIN p_category c ON p.category_id = c.category_id
            LEFT JOIN skin_type st ON p.type_id = st.type_id
            LEFT JOIN skin_concern sc ON p.concern_id = sc.concern_id
            ORDER BY p.name
            """
        )
        return [Product.from_row(row) for row in rows]


class QuizService:
    """
    피부 퀴즈 채점 서비스

    선택한 보기의 점수를 합산하고, 합계가 점수 구간에 들어가는
    추천 규칙의 제품을 찾습니다.
    """

    def __init__(self):
        self.logger = logging.getLogger(__name__)

    def fetch_quiz_data(self, db) -> List[QuizQuestion]:
        """질문 목록과 각 질문의 보기 조회"""
        questions = DatabaseManager.query(db, 'SELECT * FROM quiz_question ORDER BY question_id')
        options = DatabaseManager.query(db, 'SELECT * FROM quiz_option ORDER BY question_id, option_id')

        options_by_question: Dict[int, List[QuizOption]] = {}
        for row in options:
            option = QuizOption.from_row(row)
            options_by_question.setdefault(option.question_id, []).append(option)

        return [
            QuizQuestion.from_row(row, options_by_question.get(row['question_id'], []))
            for row in questions
        ]

    def parse_selected_option_ids(self, form) -> List[int]:
        """
        제출된 폼 값에서 보기 ID 목록 추출

        모든 필드의 모든 값을 정수로 변환하며, 숫자가 아니거나 0 이하인 값은
        버립니다. 중복은 처음 나온 순서를 유지한 채 제거합니다.

        Args:
            form: request.form (MultiDict) 또는 일반 딕셔너리

        Returns:
            List[int]: 보기 ID 목록
        """
        if hasattr(form, 'lists'):
            values = [value for _, items in form.lists() for value in items]
        else:
            values = list(form.values())

        option_ids: List[int] = []
        for value in values:
            try:
                option_id = int(str(value).strip())
            except (TypeError, ValueError):
                continue
            if option_id > 0 and option_id not in option_ids:
                option_ids.append(option_id)
        return option_ids

    def calculate_total_score(self, db, option_ids: List[int]) -> int:
        """존재하는 보기들의 score_value 합계 (없는 ID는 0점)"""
        if not option_ids:
            return 0
        rows = DatabaseManager.query(
            db,
            f'SELECT score_value FROM quiz_option WHERE option_id IN ({placeholders(option_ids)})',
            option_ids
        )
        return sum(row['score_value'] or 0 for row in rows)

    def get_user_skin_type(self, db, user_id: Optional[int]) -> Optional[int]:
        """사용자의 피부 타입 ID (익명/미등록 사용자는 None)"""
        if user_id is None:
            return None
        row = DatabaseManager.query_one(db, 'SELECT type_id FROM users WHERE user_id = ?', (user_id,))
        return row['type_id'] if row else None

    def find_recommendations(self, db, total_score: int, type_id: Optional[int]) -> List[Recommendation]:
        """
        점수 구간 [min_score, max_score]에 합계가 포함되는 추천 제품 조회

        피부 타입이 지정되지 않은 규칙(NULL)은 항상 대상이며,
        타입이 지정된 규칙은 사용자 타입과 같을 때만 대상입니다.
        """
        rows = DatabaseManager.query(
            db,
            """
            SELECT p.product_id, p.name, p.price, p.brand
            FROM quiz_recommendation qr
            JOIN product p ON qr.product_id = p.product_id
            WHERE ? BETWEEN qr.min_score AND qr.max_score
              AND (qr.type_id IS NULL OR qr.type_id = ?)
            ORDER BY qr.min_score, qr.recommendation_id
            """,
            (total_score, type_id)
        )
        return [Recommendation.from_row(row) for row in rows]

    def score_quiz(self, db, form, user_id: Optional[int] = None) -> QuizResult:
        """
        퀴즈 제출 처리

        Args:
            db: 데이터베이스 연결
            form: 제출된 폼 데이터
            user_id (Optional[int]): 로그인 사용자 ID

        Returns:
            QuizResult: 질문 목록, 합계 점수, 추천 제품, 안내 메시지
        """
        option_ids = self.parse_selected_option_ids(form)
        questions = self.fetch_quiz_data(db)

        if not option_ids:
            return QuizResult(questions, message=EMPTY_SUBMISSION_MESSAGE)

        total_score = self.calculate_total_score(db, option_ids)
        type_id = self.get_user_skin_type(db, user_id)
        recommendations = self.find_recommendations(db, total_score, type_id)

        self.logger.info(
            f"퀴즈 채점 완료: options={option_ids}, score={total_score}, "
            f"type_id={type_id}, matches={len(recommendations)}"
        )

        return QuizResult(
            questions,
            score=total_score,
            recommendations=recommendations,
            message=None if recommendations else NO_RECOMMENDATION_MESSAGE
        )


class AppointmentService:
    """예약 목록 서비스"""

    def __init__(self):
        self.logger = logging.getLogger(__name__)

    def list_appointments(self, db) -> List[Appointment]:
        rows = DatabaseManager.query(
            db,
            """
            SELECT a.appointment_id, a.date, a.time, a.notes,
                   u.name AS user_name,
                   d.name AS derm_name
            FROM appointment a
            JOIN users u ON a.user_id = u.user_id
            JOIN dermat d ON a.derm_id = d.derm_id
            ORDER BY a.date, a.time
            """
        )
        return [Appointment.from_row(row) for row in rows]

    def list_users(self, db) -> List[Dict[str, Any]]:
        rows = DatabaseManager.query(db, 'SELECT user_id, name FROM users ORDER BY name')
        return [dict(row) for row in rows]

    def list_dermatologists(self, db) -> List[Dict[str, Any]]:
        rows = DatabaseManager.query(db, 'SELECT derm_id, name FROM dermat ORDER BY name')
        return [dict(row) for row in rows]


class UserService:
    """
    사용자 관리 서비스

    로그인 인증과 사용자 생성을 담당합니다.
    """

    HASH_PREFIXES = ('pbkdf2:', 'scrypt:')

    def __init__(self):
        self.logger = logging.getLogger(__name__)

    def _is_password_hash(self, stored: str) -> bool:
        return stored.startswith(self.HASH_PREFIXES) and stored.count('$') >= 2

    def check_password(self, stored: Optional[str], password: str) -> bool:
        """
        저장된 비밀번호와 입력값 비교

        Werkzeug 해시 형식이면 check_password_hash로 검증하고,
        그 외에는 평문 값을 그대로 비교합니다.
        """
        if not stored or password is None:
            return False
        if self._is_password_hash(stored):
            return check_password_hash(stored, password)
        return hmac.compare_digest(stored.encode('utf-8'), password.encode('utf-8'))

    def authenticate_user(self, email: str, password: str, db) -> Optional[SessionUser]:
        """
        사용자 인증

        Args:
            email (str): 이메일
            password (str): 비밀번호
            db: 데이터베이스 연결

        Returns:
            Optional[SessionUser]: 일치하면 사용자 정보, 아니면 None

        Raises:
            DatabaseError: 조회 실패 시
        """
        if not email or not password:
            return None

        user = DatabaseManager.query_one(
            db,
            'SELECT user_id, name, email, password FROM users WHERE email = ? LIMIT 1',
            (email,)
        )

        if user and self.check_password(user['password'], password):
            return SessionUser.from_row(user)
        return None

    def create_user(self, name: str, email: str, password: str, db,
                    type_id: Optional[int] = None, hashed: bool = False) -> int:
        """
        새 사용자 생성

        Args:
            name (str): 이름
            email (str): 이메일
            password (str): 비밀번호
            db: 데이터베이스 연결
            type_id (Optional[int]): 피부 타입 ID
            hashed (bool): True면 Werkzeug 해시로 저장

        Returns:
            int: 생성된 user_id

        Raises:
            ValidationError: 필수값 누락 또는 이메일 중복
            DatabaseError: 저장 실패 시
        """
        if not name:
            raise ValidationError('Name is required.')
        if not email:
            raise ValidationError('Email is required.')
        if not password:
            raise ValidationError('Password is required.')

        stored = generate_password_hash(password) if hashed else password

        try:
            cursor = db.execute(
                'INSERT INTO users (name, email, password, type_id) VALUES (?, ?, ?, ?)',
                (name, email, stored, type_id)
            )
            db.commit()
        except sqlite3.IntegrityError:
            raise ValidationError(f'Email {email} is already registered.')
        except sqlite3.Error as e:
            self.logger.error(f"사용자 생성 실패: {e}")
            raise DatabaseError(f"사용자 생성 실패: {str(e)}")

        self.logger.info(f"사용자 생성 완료: {email}")
        return cursor.lastrowid
