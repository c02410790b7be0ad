"""Tests for level loading and the level registry."""

import pytest

from conftest import write_level
from voicequiz.engine.errors import LevelFormatError, LevelNotFoundError
from voicequiz.engine.level_loader import load_level
from voicequiz.levels.registry import LevelRegistry

META = {"Class": "meta", "Level": 7, "Title": "Broken"}


def _question(**overrides):
    q = {
        "Class": "question",
        "Question": "Pick one",
        "AnswerChoices": "Yes;No",
        "CorrectAnswer": "Yes",
    }
    q.update(overrides)
    return q


def test_load_level(levels_dir):
    level = load_level(levels_dir / "01_restaurant")
    assert level.id == "01_restaurant"
    assert level.number == 1
    assert level.title == "Restaurant Basics"
    assert level.question_count == 3
    assert level.questions[0].options == ("Menu", "Bill", "Receipt", "Order")
    assert level.questions[0].correct_answer == "Menu"


def test_list_answer_choices(levels_dir):
    level = load_level(levels_dir / "01_restaurant")
    assert level.questions[1].options == ("Waiter", "Chef", "Manager", "Cashier")


def test_default_question_id(levels_dir):
    level = load_level(levels_dir / "02_travel")
    assert level.questions[0].id == "02_travel-1"


class TestValidation:
    @pytest.mark.parametrize(
        "question, message",
        [
            (_question(CorrectAnswer="Maybe"), "not one of the answer choices"),
            (_question(CorrectAnswer="yes"), "not one of the answer choices"),
            (_question(AnswerChoices="Yes"), "at least two"),
            (_question(AnswerChoices="Yes;Yes;No"), "unique"),
            (_question(Question=""), "missing Question"),
            (_question(CorrectAnswer=None), "missing CorrectAnswer"),
            (_question(AnswerChoices="Yes;No;"), "must not be blank"),
            (_question(AnswerChoices=["Yes", "  "]), "must not be blank"),
            (_question(AnswerChoices=["Yes", None]), "must be text"),
            (_question(AnswerChoices=[True, False], CorrectAnswer="True"), "must be text"),
        ],
    )
    def test_bad_question(self, tmp_path, question, message):
        level_dir = write_level(tmp_path, "bad", [META, question])
        with pytest.raises(LevelFormatError, match=message):
            load_level(level_dir)

    @pytest.mark.parametrize("number", [0, -1, "one", None])
    def test_bad_level_number(self, tmp_path, number):
        level_dir = write_level(tmp_path, "bad", [dict(META, Level=number), _question()])
        with pytest.raises(LevelFormatError, match="positive integer"):
            load_level(level_dir)

    def test_unquoted_yes_no_choices(self, tmp_path):
        level_dir = tmp_path / "yes_no"
        level_dir.mkdir()
        (level_dir / "level.yaml").write_text(
            "- Class: meta\n"
            "  Level: 7\n"
            "- Class: question\n"
            "  Question: Pick one\n"
            "  AnswerChoices: [Yes, No]\n"
            "  CorrectAnswer: \"Yes\"\n"
        )
        with pytest.raises(LevelFormatError, match="must be text"):
            load_level(level_dir)

    def test_list_choices_are_stripped(self, tmp_path):
        level_dir = write_level(tmp_path, "padded", [META, _question(AnswerChoices=[" Yes ", "No "])])
        assert load_level(level_dir).questions[0].options == ("Yes", "No")

    def test_meta_must_come_first(self, tmp_path):
        level_dir = write_level(tmp_path, "bad", [_question(), META])
        with pytest.raises(LevelFormatError, match="meta"):
            load_level(level_dir)

    def test_unknown_entry_class(self, tmp_path):
        level_dir = write_level(tmp_path, "bad", [META, _question(Class="essay")])
        with pytest.raises(LevelFormatError, match="unknown Class"):
            load_level(level_dir)


class TestRegistry:
    def test_levels_sorted_by_number(self, registry):
        assert registry.numbers() == [1, 2]
        assert registry.get_level(2).title == "Travel & Airport"

    def test_unknown_level(self, registry):
        with pytest.raises(LevelNotFoundError):
            registry.get_level(99)

    def test_next_number(self, registry):
        assert registry.next_number(1) == 2
        assert registry.next_number(2) is None

    def test_duplicate_numbers_rejected(self, levels_dir):
        write_level(levels_dir, "03_copy", [dict(META, Level=2), _question()])
        with pytest.raises(LevelFormatError, match="Level number 2"):
            LevelRegistry(levels_dir=levels_dir).list_levels()

    def test_bundled_catalogue(self):
        registry = LevelRegistry()
        levels = registry.list_levels()
        assert [lv.number for lv in levels] == [1, 2, 3, 4, 5]
        assert all(lv.question_count == 5 for lv in levels)
        assert levels[0].questions[1].options == ("Menu", "Bill", "Receipt", "Order")
