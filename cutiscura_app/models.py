"""
Cutiscura 데이터 모델 모듈

데이터베이스 행을 템플릿에서 쓰기 쉬운 뷰 모델로 옮겨 담는 클래스와
애플리케이션 예외 클래스를 정의합니다.
"""

from typing import Optional, Dict, Any, List


class SessionUser:
    """세션에 저장되는 로그인 사용자 정보"""

    def __init__(self, user_id: int, name: str, email: str):
        self.id = user_id
        self.name = name
        self.email = email

    @classmethod
    def from_row(cls, row) -> 'SessionUser':
        return cls(row['user_id'], row['name'], row['email'])

    @classmethod
    def from_session(cls, data: Optional[Dict[str, Any]]) -> Optional['SessionUser']:
        """세션 딕셔너리에서 복원 (없으면 None)"""
        if not data:
            return None
        return cls(data.get('id'), data.get('name'), data.get('email'))

    def to_dict(self) -> Dict[str, Any]:
        """딕셔너리로 변환 (세션 저장용)"""
        return {
            'id': self.id,
            'name': self.name,
            'email': self.email
        }


class Product:
    """제품 카탈로그 항목"""

    def __init__(self, product_id: int, name: str, brand: Optional[str], price,
                 category_name: Optional[str] = None, type_name: Optional[str] = None,
                 concern_name: Optional[str] = None):
        self.product_id = product_id
        self.name = name
        self.brand = brand
        self.price = price
        self.category_name = category_name
        self.type_name = type_name
        self.concern_name = concern_name

    @classmethod
    def from_row(cls, row) -> 'Product':
        return cls(
            row['product_id'],
            row['name'],
            row['brand'],
            row['price'],
            row['category_name'],
            row['type_name'],
            row['concern_name']
        )


class RoutineSummary:
    """대시보드에 표시되는 루틴 요약"""

    def __init__(self, routine_id: int, routine_name: str, time_of_day: Optional[str],
                 user_name: str, products: str):
        self.routine_id = routine_id
        self.routine_name = routine_name
        self.time_of_day = time_of_day
        self.user_name = user_name
        self.products = products


class DashboardStats:
    """대시보드 통계 (제품/사용자/루틴 수)"""

    def __init__(self, products: int = 0, users: int = 0, routines: int = 0):
        self.products = products
        self.users = users
        self.routines = routines

    def to_dict(self) -> Dict[str, int]:
        return {
            'products': self.products,
            'users': self.users,
            'routines': self.routines
        }


class QuizOption:
    """퀴즈 선택지"""

    def __init__(self, option_id: int, question_id: int, option_text: str, score_value: int):
        self.option_id = option_id
        self.question_id = question_id
        self.option_text = option_text
        self.score_value = score_value or 0

    @classmethod
    def from_row(cls, row) -> 'QuizOption':
        return cls(row['option_id'], row['question_id'], row['option_text'], row['score_value'])


class QuizQuestion:
    """퀴즈 질문과 그 선택지 목록"""

    def __init__(self, question_id: int, question_text: str, options: List[QuizOption] = None):
        self.question_id = question_id
        self.question_text = question_text
        self.options = options or []

    @classmethod
    def from_row(cls, row, options: List[QuizOption] = None) -> 'QuizQuestion':
        return cls(row['question_id'], row['question_text'], options)


class Recommendation:
    """점수 구간에 매칭된 추천 제품"""

    def __init__(self, product_id: int, name: str, price, brand: Optional[str] = None):
        self.product_id = product_id
        self.name = name
        self.price = price
        self.brand = brand

    @classmethod
    def from_row(cls, row) -> 'Recommendation':
        return cls(row['product_id'], row['name'], row['price'], row['brand'])


class Appointment:
    """예약 목록 항목"""

    def __init__(self, appointment_id: int, date, time, notes: Optional[str],
                 user_name: str, derm_name: str):
        self.appointment_id = appointment_id
        self.date = date
        self.time = time
        self.notes = notes
        self.user_name = user_name
        self.derm_name = derm_name

    @classmethod
    def from_row(cls, row) -> 'Appointment':
        return cls(
            row['appointment_id'],
            row['date'],
            row['time'],
            row['notes'],
            row['user_name'],
            row['derm_name']
        )


class QuizResult:
    """퀴즈 채점 결과"""

    def __init__(self, questions: List[QuizQuestion], score: Optional[int] = None,
                 recommendations: Optional[List[Recommendation]] = None,
                 message: Optional[str] = None):
        self.questions = questions
        self.score = score
        self.recommendations = recommendations
        self.message = message

    def to_context(self) -> Dict[str, Any]:
        """템플릿 렌더링 컨텍스트로 변환"""
        return {
            'questions': self.questions,
            'score': self.score,
            'recommendations': self.recommendations,
            'message': self.message
        }


# 예외 클래스들
class ValidationError(Exception):
    """입력 검증 실패 예외"""
    pass


class DatabaseError(Exception):
    """데이터베이스 관련 예외"""
    pass
