"""Tests for quiz storage, JSON parsing and PDF text import."""

from __future__ import annotations

import json

import pytest

from quiz_room.core.errors import MalformedDocument, QuizNotFoundError
from quiz_room.core.models import FillBlanksQuestion, McqQuestion, TableData, TheoryQuestion
from quiz_room.core.quiz_exporter import document_to_dict
from quiz_room.core.quiz_importer import parse_exam_text, parse_quiz_document
from quiz_room.core.services.quiz_repository import QuizRepository, build_file_name

from conftest import make_document, make_mcq, stored_quiz, write_quiz


class TestParseQuizDocument:
    def test_parses_stored_format(self):
        data = {
            "courseCode": "ACC101",
            "topic": "Ledgers",
            "marks": "100",
            "timeLimit": "30",
            "quizType": "theory",
            "tableData": {"headers": ["Account", "Balance"], "rows": [["Cash", "100"]]},
            "questions": [
                {"id": 1, "text": "Define equity", "answer": "Owner's claim"},
                {
                    "id": 2,
                    "text": "Fill the ledger",
                    "type": "fill_blanks",
                    "isTableAnswer": True,
                    "answerTable": {"headers": ["Dr", "Cr"], "rows": [["", ""]]},
                    "includeTable": True,
                    "tableData": {"headers": ["x"], "rows": [["1"]]},
                },
                {"id": 3, "text": "Pick one", "type": "mcq", "options": ["a", "b"], "correctOption": "1"},
            ],
        }
        document = parse_quiz_document(data)

        assert document.marks == 100
        assert document.time_limit_minutes == 30
        assert document.reference_table == TableData(headers=["Account", "Balance"], rows=[["Cash", "100"]])

        theory, table_question, mcq = document.questions
        assert isinstance(theory, TheoryQuestion)
        assert theory.id == "1"
        assert isinstance(table_question, FillBlanksQuestion)
        assert table_question.is_table_answer
        assert table_question.answer_table_template.headers == ["Dr", "Cr"]
        assert table_question.reference_table.rows == [["1"]]
        assert isinstance(mcq, McqQuestion)
        assert mcq.correct_option_index == 1

    @pytest.mark.parametrize(
        "data, message",
        [
            ({"topic": "x", "questions": []}, "courseCode"),
            ({"courseCode": "A", "questions": []}, "topic"),
            ({"courseCode": "A", "topic": "x", "questions": "nope"}, "questions"),
            ([], "object"),
        ],
    )
    def test_rejects_malformed_shapes(self, data, message):
        with pytest.raises(MalformedDocument, match=message):
            parse_quiz_document(data)

    def test_rejects_invalid_correct_option(self):
        data = stored_quiz("A", "x", ["1"])
        data["questions"][0]["correctOption"] = 5
        with pytest.raises(MalformedDocument):
            parse_quiz_document(data)

    def test_duplicate_ids_are_made_unique(self):
        document = parse_quiz_document(stored_quiz("A", "x", ["7", "7", "7"]))
        ids = [q.id for q in document.questions]
        assert len(set(ids)) == 3
        assert ids[0] == "7"

    def test_missing_time_limit_means_untimed(self):
        data = stored_quiz("A", "x", ["1"])
        del data["timeLimit"]
        assert parse_quiz_document(data).time_limit_minutes == 0

    def test_exporter_output_parses_back(self):
        document = make_document([make_mcq("a", correct=2), TheoryQuestion(id="b", text="?", answer="Assets")])
        parsed = parse_quiz_document(document_to_dict(document))
        assert parsed.questions == document.questions
        assert parsed.time_limit_minutes == document.time_limit_minutes


class TestQuizRepository:
    def test_lists_sorted_and_skips_broken_files(self, data_dir):
        (data_dir / "BROKEN.json").write_text("{not json", encoding="utf-8")
        write_quiz(data_dir, "AAA_missing.json", {"topic": "no course", "questions": []})
        (data_dir / "notes.txt").write_text("ignored", encoding="utf-8")

        names = [name for name, _ in QuizRepository(data_dir).list_quiz_documents()]
        assert names == ["ACC101_Intro.json", "ACC101_Ledgers.json", "ECO201_Markets.json"]

    def test_missing_directory_is_empty(self, tmp_path):
        assert QuizRepository(tmp_path / "absent").list_quiz_documents() == []

    def test_summaries(self, data_dir):
        summaries = QuizRepository(data_dir).list_summaries()
        intro = summaries[0]
        assert intro.file_name == "ACC101_Intro.json"
        assert intro.question_count == 2
        assert intro.time_limit_minutes == 10

    def test_load_and_not_found(self, data_dir):
        repository = QuizRepository(data_dir)
        assert repository.load_quiz_document("ECO201_Markets.json").course_code == "ECO201"
        with pytest.raises(QuizNotFoundError):
            repository.load_quiz_document("MISSING.json")

    def test_undecodable_file_is_malformed(self, data_dir):
        (data_dir / "BAD_Quiz.json").write_bytes(b'{"courseCode": "\xff\xfe"}')
        repository = QuizRepository(data_dir)
        with pytest.raises(MalformedDocument, match="UTF-8"):
            repository.load_quiz_document("BAD_Quiz.json")
        names = [name for name, _ in repository.list_quiz_documents()]
        assert "BAD_Quiz.json" not in names

    @pytest.mark.parametrize("name", ["../secret.json", "a/b.json", "a\\b.json", ""])
    def test_rejects_unsafe_names(self, data_dir, name):
        with pytest.raises(ValueError):
            QuizRepository(data_dir).load_quiz_document(name)

    def test_save_and_delete(self, tmp_path):
        repository = QuizRepository(tmp_path / "store")
        document = make_document([make_mcq("a")])
        file_name = repository.save_quiz_document(document)

        assert file_name == "ACC101_Cash_Flow.json"
        stored = json.loads((tmp_path / "store" / file_name).read_text(encoding="utf-8"))
        assert stored["courseCode"] == "ACC101"
        assert "createdAt" in stored

        repository.delete_quiz_document(file_name)
        assert not (tmp_path / "store" / file_name).exists()
        with pytest.raises(QuizNotFoundError):
            repository.delete_quiz_document(file_name)

    def test_validate_all(self, data_dir):
        write_quiz(data_dir, "ZZZ_bad.json", {"courseCode": "Z", "questions": []})
        outcomes = QuizRepository(data_dir).validate_all()
        by_name = {o.file_name: o for o in outcomes}
        assert by_name["ACC101_Intro.json"].passed
        assert by_name["ACC101_Intro.json"].question_count == 2
        assert not by_name["ZZZ_bad.json"].passed
        assert by_name["ZZZ_bad.json"].message == "Missing topic"


def test_build_file_name():
    assert build_file_name("acc 101!", "Cash Flow/2") == "ACC101_Cash_Flow_2.json"


class TestParseExamText:
    def test_parses_numbered_questions(self):
        text = """
        Accounting Basics Exam
        1. Which statement describes accrual accounting?
        A. Cash is recorded when received
        B. Revenue is recorded when earned
        C. Nothing is recorded
        Answer: B
        2) What is the normal balance
        of an asset account?
        a) Debit
        b) Credit Answer: a
        """
        questions = parse_exam_text(text, id_prefix="exam")

        assert len(questions) == 2
        first, second = questions
        assert first.id == "exam_1"
        assert first.text == "Which statement describes accrual accounting?"
        assert first.options == [
            "Cash is recorded when received",
            "Revenue is recorded when earned",
            "Nothing is recorded",
        ]
        assert first.correct_option_index == 1
        assert second.text == "What is the normal balance of an asset account?"
        assert second.options == ["Debit", "Credit"]
        assert second.correct_option_index == 0

    def test_answer_out_of_range_defaults_to_first(self):
        questions = parse_exam_text("1. Pick\nA. one\nB. two\nAnswer: E")
        assert questions[0].correct_option_index == 0

    def test_questions_without_options_are_dropped(self):
        assert parse_exam_text("1. Explain depreciation.\n2. Define assets.") == []
