from unittest import mock

import groq
import httpx
from django.test import SimpleTestCase, override_settings

from . import ai, evaluator, generator, grades
from .exceptions import AnswerTooShort, EvaluationUnavailable, ValidationFailed

GROQ_REQUEST = httpx.Request("POST", "https://api.groq.com/openai/v1/chat/completions")


def evaluation(**overrides):
    data = {
        "overall_score": 7.26,
        "competency_scores": {"team_leadership": 7, "drive_commitment": 6.5},
        "star_method_analysis": {"situation": 7, "task": 6, "action": 8, "result": 7},
        "feedback": "Good structure.\n\nAdd measurable results.",
        "strengths": ["Clear context"],
        "improvement_areas": ["Quantify impact"],
        "improved_answer": "Situation: ...",
    }
    data.update(overrides)
    return data


class AnswerEvaluatorTestCase(SimpleTestCase):
    def test_minimum_length_is_measured_after_trimming(self):
        with self.assertRaises(AnswerTooShort):
            evaluator.validate_answer_text(" " * 50 + "a" * 99 + " " * 50)
        self.assertEqual(evaluator.validate_answer_text("  " + "a" * 100 + "  "), "a" * 100)

    @override_settings(MIN_ANSWER_LENGTH=10)
    def test_minimum_length_is_configurable(self):
        self.assertEqual(evaluator.validate_answer_text("long enough"), "long enough")

    @mock.patch("interviewBot.ai.complete_json")
    def test_short_answer_never_reaches_provider(self, complete_json):
        with self.assertRaises(AnswerTooShort):
            evaluator.evaluate("Too short", "Question?", "team_leadership", "heo")
        complete_json.assert_not_called()

    @mock.patch("interviewBot.ai.complete_json")
    def test_evaluate(self, complete_json):
        complete_json.return_value = evaluation()
        result = evaluator.evaluate("a" * 150, "Describe a time you led a team.", "team_leadership", "heo")

        self.assertEqual(result["overall_score"], 7.3)
        self.assertEqual(result["star_method_analysis"]["action"], 8)
        self.assertEqual(result["strengths"], ["Clear context"])
        system, prompt = complete_json.call_args[0]
        self.assertIn("HEO", system)
        self.assertIn("Team Leadership", prompt)

    @mock.patch("interviewBot.ai.complete_json")
    def test_every_score_has_one_decimal(self, complete_json):
        complete_json.return_value = evaluation(
            competency_scores={"team_leadership": 6.849, "drive_commitment": 7},
            star_method_analysis={"situation": 7.25, "task": 5.96, "action": 8.04, "result": 3.33},
        )
        result = evaluator.evaluate("a" * 150, "Question?", "team_leadership", "heo")

        self.assertEqual(result["competency_scores"], {"team_leadership": 6.8, "drive_commitment": 7.0})
        self.assertEqual(result["star_method_analysis"],
                         {"situation": 7.2, "task": 6.0, "action": 8.0, "result": 3.3})

    @mock.patch("interviewBot.ai.complete_json")
    def test_out_of_range_score_is_malformed(self, complete_json):
        complete_json.return_value = evaluation(overall_score=72)
        with self.assertRaises(EvaluationUnavailable) as ctx:
            evaluator.evaluate("a" * 150, "Question?", "team_leadership", "heo")
        self.assertEqual(ctx.exception.kind, EvaluationUnavailable.MALFORMED)

    @mock.patch("interviewBot.ai.complete_json")
    def test_missing_star_analysis_is_malformed(self, complete_json):
        data = evaluation()
        del data["star_method_analysis"]
        complete_json.return_value = data
        with self.assertRaises(EvaluationUnavailable) as ctx:
            evaluator.evaluate("a" * 150, "Question?", "team_leadership", "heo")
        self.assertEqual(ctx.exception.kind, EvaluationUnavailable.MALFORMED)


class QuestionGeneratorTestCase(SimpleTestCase):
    def questions(self, framework, extra=0):
        config = grades.get_framework(framework)
        count = len(config.competencies) * config.questions_per_unit + extra
        keys = [key for key, _ in config.competencies]
        return {
            "questions": [
                {"competency": keys[i % len(keys)], "question_text": f" Question {i} ", "difficulty": "advanced"}
                for i in range(count)
            ]
        }

    @mock.patch("interviewBot.ai.complete_json")
    def test_trims_to_expected_count(self, complete_json):
        complete_json.return_value = self.questions("old", extra=3)
        result = generator.generate_questions("heo", "old")

        self.assertEqual(len(result), 12)
        self.assertEqual(result[0]["question_text"], "Question 0")
        self.assertEqual(result[0]["difficulty"], "advanced")

    @mock.patch("interviewBot.ai.complete_json")
    def test_labels_are_normalised_to_keys(self, complete_json):
        complete_json.return_value = {"questions": [
            {"competency": "Judgement, Analysis & Decision Making", "question_text": "Q1"},
            {"competency": "judgement_analysis_decision_making", "question_text": "Q2"},
        ]}
        result = generator.generate_questions("eo", "old", focus=["Judgement, Analysis & Decision Making"])

        self.assertEqual([q["competency"] for q in result], ["judgement_analysis_decision_making"] * 2)
        self.assertEqual(result[0]["difficulty"], "intermediate")

    @mock.patch("interviewBot.ai.complete_json")
    def test_empty_question_list_is_malformed(self, complete_json):
        complete_json.return_value = {"questions": []}
        with self.assertRaises(EvaluationUnavailable) as ctx:
            generator.generate_questions("eo", "new")
        self.assertEqual(ctx.exception.kind, EvaluationUnavailable.MALFORMED)

    def test_unknown_focus_competency(self):
        with self.assertRaises(ValidationFailed):
            generator.generate_questions("eo", "new", focus=["juggling"])

    @mock.patch("interviewBot.ai.complete_json")
    def test_prompt_carries_cv_analysis(self, complete_json):
        complete_json.return_value = self.questions("new")
        generator.generate_questions("ap", "new", analysis={"key_highlights": ["Led HSE rollout"]})
        prompt = complete_json.call_args[0][1]
        self.assertIn("Led HSE rollout", prompt)
        self.assertIn("Assistant Principal", prompt)


class GradesTestCase(SimpleTestCase):
    def test_question_counts(self):
        self.assertEqual(grades.get_framework("old").question_count(), 12)
        self.assertEqual(grades.get_framework("new").question_count(), 12)
        self.assertEqual(grades.get_framework("new").question_count(["leading_and_empowering"]), 3)

    def test_pass_threshold_uses_percentage(self):
        self.assertTrue(grades.passed("heo", 6.5))
        self.assertFalse(grades.passed("heo", 6.4))
        self.assertTrue(grades.passed("co", 5.5))
        self.assertIsNone(grades.passed("heo", None))

    def test_unknown_grade(self):
        with self.assertRaises(ValidationFailed):
            grades.get_grade("ceo")
        with self.assertRaises(ValidationFailed):
            grades.get_framework("newest")


class GroqWrapperTestCase(SimpleTestCase):
    def test_parse_plain_and_fenced_json(self):
        self.assertEqual(ai.parse_json_content('{"a": 1}'), {"a": 1})
        self.assertEqual(ai.parse_json_content('```json\n{"a": 1}\n```'), {"a": 1})

    def test_parse_strips_raw_control_characters(self):
        self.assertEqual(ai.parse_json_content('{"feedback": "line one\nline two"}'),
                         {"feedback": "line one line two"})

    def test_parse_rejects_garbage_and_non_objects(self):
        for content in ("not json", "[1, 2]", ""):
            with self.assertRaises(EvaluationUnavailable) as ctx:
                ai.parse_json_content(content)
            self.assertEqual(ctx.exception.kind, EvaluationUnavailable.MALFORMED)

    @override_settings(GROQ_API_KEY="")
    def test_missing_key_is_unavailable(self):
        with self.assertRaises(EvaluationUnavailable) as ctx:
            ai.get_client()
        self.assertEqual(ctx.exception.kind, EvaluationUnavailable.UNAVAILABLE)
        self.assertEqual(ctx.exception.status_code, 503)

    @mock.patch("interviewBot.ai.get_client")
    def test_provider_errors_are_translated(self, get_client):
        create = get_client.return_value.chat.completions.create
        cases = [
            (groq.APITimeoutError(request=GROQ_REQUEST), EvaluationUnavailable.TIMEOUT, 503),
            (groq.RateLimitError("rate limited", response=httpx.Response(429, request=GROQ_REQUEST), body=None),
             EvaluationUnavailable.QUOTA, 429),
            (groq.AuthenticationError("bad key", response=httpx.Response(401, request=GROQ_REQUEST), body=None),
             EvaluationUnavailable.UNAVAILABLE, 503),
            (groq.APIConnectionError(request=GROQ_REQUEST), EvaluationUnavailable.UNAVAILABLE, 503),
        ]
        for error, kind, status_code in cases:
            create.side_effect = error
            with self.assertRaises(EvaluationUnavailable) as ctx:
                ai.complete_json("system", "prompt")
            self.assertEqual(ctx.exception.kind, kind)
            self.assertEqual(ctx.exception.status_code, status_code)

    @mock.patch("interviewBot.ai.get_client")
    def test_complete_json_uses_json_mode(self, get_client):
        create = get_client.return_value.chat.completions.create
        create.return_value.choices = [mock.Mock(message=mock.Mock(content='{"ok": true}'))]

        self.assertEqual(ai.complete_json("system", "prompt"), {"ok": True})
        self.assertEqual(create.call_args.kwargs["response_format"], {"type": "json_object"})
