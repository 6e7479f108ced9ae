import pytest
from werkzeug.datastructures import MultiDict

from cutiscura_app.models import DatabaseError
from cutiscura_app.services import EMPTY_SUBMISSION_MESSAGE, NO_RECOMMENDATION_MESSAGE


@pytest.fixture
def quiz_service(app):
    return app.quiz_service


def names(recommendations):
    return [product.name for product in recommendations]


class TestParseSelectedOptionIds:

    def test_keeps_numeric_values(self, quiz_service):
        form = MultiDict({'question_1': '2', 'question_2': '6'})
        assert quiz_service.parse_selected_option_ids(form) == [2, 6]

    def test_drops_non_numeric_zero_and_negative(self, quiz_service):
        form = MultiDict([('question_1', 'abc'), ('question_2', '0'),
                          ('question_3', '-4'), ('question_4', ''), ('question_5', ' 8 ')])
        assert quiz_service.parse_selected_option_ids(form) == [8]

    def test_reads_every_value_of_a_field(self, quiz_service):
        form = MultiDict([('answers', '1'), ('answers', '5'), ('answers', '1')])
        assert quiz_service.parse_selected_option_ids(form) == [1, 5]

    def test_accepts_plain_dict(self, quiz_service):
        assert quiz_service.parse_selected_option_ids({'a': '3', 'b': 4}) == [3, 4]


class TestCalculateTotalScore:

    def test_sums_selected_option_scores(self, quiz_service, db):
        assert quiz_service.calculate_total_score(db, [1, 2]) == 7

    def test_unknown_ids_contribute_nothing(self, quiz_service, db):
        assert quiz_service.calculate_total_score(db, [1, 2, 999, 1000]) == 7

    def test_no_ids_scores_zero(self, quiz_service, db):
        assert quiz_service.calculate_total_score(db, []) == 0

    def test_null_score_counts_as_zero(self, quiz_service, db):
        db.execute(
            "INSERT INTO quiz_option (option_id, question_id, option_text, score_value) "
            "VALUES (10, 3, 'Not sure', NULL)"
        )
        db.commit()
        assert quiz_service.calculate_total_score(db, [10, 9]) == 4


class TestFindRecommendations:

    def test_null_type_rule_matches_anonymous_user(self, quiz_service, db):
        assert names(quiz_service.find_recommendations(db, 7, None)) == ['Hydra Boost Serum']

    def test_typed_rule_matches_same_skin_type(self, quiz_service, db):
        assert names(quiz_service.find_recommendations(db, 7, 2)) == [
            'Hydra Boost Serum', 'Oil Control Gel'
        ]

    def test_typed_rule_ignored_for_other_skin_type(self, quiz_service, db):
        assert names(quiz_service.find_recommendations(db, 7, 1)) == ['Hydra Boost Serum']

    @pytest.mark.parametrize('score, expected', [
        (0, ['Gentle Foam Cleanser']),
        (4, ['Gentle Foam Cleanser']),
        (5, ['Hydra Boost Serum']),
        (10, ['Hydra Boost Serum']),
        (12, ['Brightening Vitamin C Serum']),
    ])
    def test_interval_bounds_are_inclusive(self, quiz_service, db, score, expected):
        assert names(quiz_service.find_recommendations(db, score, None)) == expected

    def test_score_outside_every_interval(self, quiz_service, db):
        assert quiz_service.find_recommendations(db, 11, None) == []
        assert quiz_service.find_recommendations(db, 40, 1) == []


class TestGetUserSkinType:

    def test_known_user(self, quiz_service, db):
        assert quiz_service.get_user_skin_type(db, 2) == 2

    def test_user_without_skin_type(self, quiz_service, db):
        assert quiz_service.get_user_skin_type(db, 3) is None

    def test_anonymous_or_unknown_user(self, quiz_service, db):
        assert quiz_service.get_user_skin_type(db, None) is None
        assert quiz_service.get_user_skin_type(db, 999) is None


class TestScoreQuiz:

    def test_fetch_quiz_data_groups_options(self, quiz_service, db):
        questions = quiz_service.fetch_quiz_data(db)

        assert [q.question_id for q in questions] == [1, 2, 3]
        assert [o.option_id for o in questions[0].options] == [1, 2, 3]
        assert all(o.question_id == 2 for o in questions[1].options)

    def test_example_submission(self, quiz_service, db):
        result = quiz_service.score_quiz(db, MultiDict({'question_1': '1', 'question_2': '2'}))

        assert result.score == 7
        assert names(result.recommendations) == ['Hydra Boost Serum']
        assert result.message is None
        assert len(result.questions) == 3

    def test_uses_skin_type_of_user(self, quiz_service, db):
        result = quiz_service.score_quiz(db, MultiDict({'q': '2', 'r': '5'}), user_id=1)

        # 5 + 3 = 8, Asha(Dry)에게는 Oily 전용 규칙이 적용되지 않음
        assert result.score == 8
        assert names(result.recommendations) == ['Hydra Boost Serum']

    def test_empty_submission_skips_scoring(self, quiz_service, db, monkeypatch):
        calls = []
        monkeypatch.setattr(quiz_service, 'calculate_total_score', lambda *a: calls.append(a))
        monkeypatch.setattr(quiz_service, 'find_recommendations', lambda *a: calls.append(a))

        result = quiz_service.score_quiz(db, MultiDict({'question_1': '', 'question_2': 'x'}))

        assert calls == []
        assert result.message == EMPTY_SUBMISSION_MESSAGE
        assert result.score is None
        assert result.recommendations is None
        assert len(result.questions) == 3

    def test_no_matching_interval(self, quiz_service, db):
        result = quiz_service.score_quiz(db, MultiDict({'a': '1', 'b': '6', 'c': '9'}))

        assert result.score == 11
        assert result.recommendations == []
        assert result.message == NO_RECOMMENDATION_MESSAGE


class TestQuizRoutes:

    def test_quiz_page(self, client):
        response = client.get('/quiz')

        assert response.status_code == 200
        assert b'How does your skin feel by midday?' in response.data
        assert b'name="question_1" value="1"' in response.data

    def test_submit_renders_score_and_products(self, client):
        response = client.post('/quiz/submit', data={'question_1': '1', 'question_2': '2'})

        assert response.status_code == 200
        assert b'class="score">7<' in response.data
        assert b'Hydra Boost Serum' in response.data
        assert b'Oil Control Gel' not in response.data

    def test_submit_as_logged_in_user(self, client, auth):
        auth.login('ben@cutiscura.com', 'ben123')
        response = client.post('/quiz/submit', data={'question_1': '1', 'question_2': '2'})

        assert b'Hydra Boost Serum' in response.data
        assert b'Oil Control Gel' in response.data

    def test_empty_submission(self, client):
        response = client.post('/quiz/submit', data={})

        assert response.status_code == 200
        assert b'Please answer all questions before submitting.' in response.data
        assert b'class="score"' not in response.data

    def test_no_recommendations_found(self, client):
        response = client.post('/quiz/submit', data={'a': '1', 'b': '6', 'c': '9'})

        assert response.status_code == 200
        assert b'class="score">11<' in response.data
        assert b'No recommendations found for this score.' in response.data

    def test_scoring_failure_shows_generic_message(self, app, client, monkeypatch):
        def broken(*args):
            raise DatabaseError('connection lost')

        monkeypatch.setattr(app.quiz_service, 'calculate_total_score', broken)
        response = client.post('/quiz/submit', data={'question_1': '1'})

        assert response.status_code == 200
        assert b'Something went wrong calculating your results.' in response.data
        assert b'How does your skin feel by midday?' in response.data

    def test_quiz_load_failure(self, app, client, monkeypatch):
        def broken(*args):
            raise DatabaseError('connection lost')

        monkeypatch.setattr(app.quiz_service, 'fetch_quiz_data', broken)
        response = client.get('/quiz')

        assert response.status_code == 200
        assert b'Unable to load quiz at the moment.' in response.data
