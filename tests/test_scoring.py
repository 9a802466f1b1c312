"""Тесты подсчёта баллов"""
import pytest

from services.errors import InvalidResponseError
from services.scoring import (
    BASELINE,
    PreferenceScore,
    from_ten_scale,
    normalize,
    normalize_generation_label,
    resolve_generation,
    to_ten_scale,
    validate_response,
    workplace_dna,
)
from utils.questions import (
    COLLABORATION,
    FORMALITY,
    QUESTIONS,
    TECHNOLOGY,
    WELLNESS,
    Option,
    Question,
    get_next_question_index,
)


NEUTRAL_QUESTIONS = [
    Question(0, "Generation", (
        Option("Gen Z", "Gen Z", generation="Gen Z"),
        Option("Millennial", "Millennials", generation="Millennials"),
    )),
    Question(1, "Neutral", (
        Option("n1", "Neutral 1"),
        Option("n2", "Neutral 2", deltas={COLLABORATION: 0, WELLNESS: 0}),
    )),
    Question(2, "Extreme", (
        Option("high", "High", deltas={COLLABORATION: 80, FORMALITY: 80}),
        Option("low", "Low", deltas={TECHNOLOGY: -80, WELLNESS: -55}),
    )),
]


def test_normalize_all_first_options():
    """Тест: первый вариант в каждом вопросе"""
    response = {q.index: q.options[0].id for q in QUESTIONS}

    scores = normalize(response, QUESTIONS)

    assert scores == PreferenceScore(collaboration=82, formality=28, technology=64, wellness=84)


def test_normalize_is_idempotent():
    """Тест: повторный расчёт даёт тот же результат"""
    response = {0: "Gen X", 1: "classic_reception", 3: "meeting_room", 5: "games_lounge"}

    assert normalize(response, QUESTIONS) == normalize(response, QUESTIONS)


def test_neutral_response_equals_baseline():
    """Тест: нейтральные варианты дают базовый балл по всем измерениям"""
    scores = normalize({0: "Gen Z", 1: "n2"}, NEUTRAL_QUESTIONS)

    assert scores == PreferenceScore(BASELINE, BASELINE, BASELINE, BASELINE)
    assert scores.as_dict() == {
        "collaboration": 50, "formality": 50, "technology": 50, "wellness": 50
    }


def test_empty_response_equals_baseline():
    assert normalize({}, QUESTIONS) == PreferenceScore()


def test_generation_question_is_not_scored():
    assert normalize({0: "Gen Z"}, QUESTIONS) == normalize({0: "Baby Boomer"}, QUESTIONS)


def test_scores_are_clamped():
    """Тест: баллы ограничены диапазоном 0-100"""
    high = normalize({2: "high"}, NEUTRAL_QUESTIONS)
    low = normalize({2: "low"}, NEUTRAL_QUESTIONS)

    assert high.collaboration == 100
    assert high.formality == 100
    assert low.technology == 0
    assert low.wellness == 0


def test_unknown_option_raises():
    with pytest.raises(InvalidResponseError) as exc_info:
        normalize({1: "rooftop_bar"}, QUESTIONS)

    assert exc_info.value.question_index == 1
    assert exc_info.value.option_id == "rooftop_bar"


def test_unknown_question_raises():
    with pytest.raises(InvalidResponseError):
        normalize({42: "vibrant_lounge"}, QUESTIONS)


def test_unknown_generation_option_raises():
    with pytest.raises(InvalidResponseError):
        normalize({0: "Silent Generation"}, QUESTIONS)


def test_resolve_generation():
    assert resolve_generation({0: "Millennial", 1: "vibrant_lounge"}, QUESTIONS) == "Millennials"
    assert resolve_generation({1: "vibrant_lounge"}, QUESTIONS) is None


def test_normalize_generation_label():
    """Тест: старые значения поколения приводятся к каноническим"""
    assert normalize_generation_label("Millennial") == "Millennials"
    assert normalize_generation_label("baby boomer") == "Baby Boomers"
    assert normalize_generation_label("Gen Z") == "Gen Z"
    assert normalize_generation_label("Generation Alpha") is None
    assert normalize_generation_label(None) is None


def test_scale_round_trip():
    """Тест: перевод 0-100 -> 0-10 -> 0-100 восстанавливает значение"""
    for value in range(0, 101):
        assert abs(from_ten_scale(to_ten_scale(value)) - value) <= 1


def test_to_ten_scale():
    assert to_ten_scale(82) == 8.2
    assert PreferenceScore(82, 28, 64, 84).to_ten_scale() == {
        "collaboration": 8.2, "formality": 2.8, "technology": 6.4, "wellness": 8.4
    }


def test_workplace_dna():
    dna = workplace_dna({"collaboration": 8, "formality": 5, "technology": 2, "wellness": 7})

    assert dna == "Collaborative · Flexible · Traditional · Wellness-Focused"


def test_workplace_dna_low_scores():
    dna = workplace_dna({"collaboration": 1, "formality": 7, "technology": 4, "wellness": 3.9})

    assert dna == "Independent · Structured · Tech-Enabled · Performance-Driven"


def test_validate_response():
    problems = validate_response({1: "vibrant_lounge", 2: "nope", 9: "x"}, QUESTIONS)

    assert problems == [
        "Question 2: invalid option 'nope'",
        "Question 9: unknown question",
    ]


def test_question_table_shape():
    """Тест: один вопрос о поколении, остальные участвуют в подсчёте"""
    assert [q.index for q in QUESTIONS if q.is_generation] == [0]
    assert all(any(o.deltas for o in q.options) for q in QUESTIONS[1:])
    assert all(o.generation for o in QUESTIONS[0].options)
    assert all(not o.deltas for o in QUESTIONS[0].options)


def test_next_question_index():
    assert get_next_question_index({}) == 0
    assert get_next_question_index({0: "Gen Z", 1: "vibrant_lounge"}) == 2
    assert get_next_question_index({q.index: q.options[0].id for q in QUESTIONS}) is None
