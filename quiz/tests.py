from django.contrib.auth import get_user_model
from django.test import TestCase, Client
from django.urls import reverse

from accounts.tests import graphql, error_code
from quiz.forms import QuestionAdminForm
from quiz.models import Answer, Question, Feedback, Quiz

User = get_user_model()


ALL_CONTENT_QUERY = """
query {
  allAnswers { name }
  allQuestions { name }
  allFeedbacks { name category }
  allQuizzes { name category }
}
"""

QUIZ_QUERY = """
query ($id: ID!) {
  quiz(id: $id) {
    id
    name
    category
    questions {
      name
      answers { name }
      correct { name }
    }
    feedback { name category }
  }
}
"""

CREATE_QUIZ_MUTATION = """
mutation ($data: QuizInput!) {
  createQuiz(data: $data) {
    id
    name
    category
    questions { id }
    feedback { id }
  }
}
"""

CREATE_FEEDBACK_MUTATION = """
mutation ($data: FeedbackInput!) {
  createFeedback(data: $data) { id category }
}
"""

CREATE_QUESTION_MUTATION = """
mutation ($data: QuestionInput!) {
  createQuestion(data: $data) {
    id
    answers { id }
    correct { id }
  }
}
"""

UPDATE_QUESTION_MUTATION = """
mutation ($id: ID!, $data: QuestionInput) {
  updateQuestion(id: $id, data: $data) {
    id
    correct { name }
  }
}
"""

CREATE_MUTATIONS = {
    "Answer": ("createAnswer", "AnswerInput", {"name": "Berlin"}),
    "Question": ("createQuestion", "QuestionInput", {"description": "Capital of Germany?"}),
    "Feedback": ("createFeedback", "FeedbackInput", {"description": "Well done", "category": "good"}),
    "Quiz": ("createQuiz", "QuizInput", {"name": "Capitals", "category": "fun"}),
}

DELETE_MUTATIONS = {
    "Answer": "deleteAnswer",
    "Question": "deleteQuestion",
    "Feedback": "deleteFeedback",
    "Quiz": "deleteQuiz",
}


class QuizListsTestCase(TestCase):

    @classmethod
    def setUpTestData(cls):
        cls.admin = User.objects.create_user(email="admin@quiz.test", name="Admin", password="adminpass123",
                                             is_admin=True)
        cls.test_user = User.objects.create_user(email="testuser@quiz.test", name="Test User",
                                                 password="password123")

        cls.paris = Answer.objects.create(name="Paris", description="Capital of France")
        cls.london = Answer.objects.create(name="London")
        cls.rome = Answer.objects.create(name="Rome")

        cls.question_one = Question.objects.create(name="France", description="What is the capital of France?",
                                                   correct=cls.paris)
        cls.question_one.answers.set([cls.paris, cls.london])

        cls.feedback_good = Feedback.objects.create(name="Nice", description="Good job", category="good")
        cls.feedback_bad = Feedback.objects.create(name="Oops", description="Try again", category="bad")

        cls.test_quiz = Quiz.objects.create(name="Europe", category="study")
        cls.test_quiz.questions.set([cls.question_one])
        cls.test_quiz.feedback.set([cls.feedback_good])

    def setUp(self):
        self.admin_client = Client()
        self.admin_client.force_login(QuizListsTestCase.admin)
        self.authenticated_client = Client()
        self.authenticated_client.force_login(QuizListsTestCase.test_user)
        self.unauthenticated_client = Client()

    def quiz_data(self, **overrides):
        data = {
            "name": "Geo",
            "category": "study",
            "questions": [str(QuizListsTestCase.question_one.pk)],
            "feedback": [str(QuizListsTestCase.feedback_good.pk)],
        }
        data.update(overrides)
        return data

    def test_anyone_reads_content_lists(self):
        for client in (self.unauthenticated_client, self.authenticated_client, self.admin_client):
            result = graphql(client, ALL_CONTENT_QUERY)
            self.assertNotIn("errors", result)
            self.assertEqual(len(result["data"]["allAnswers"]), 3)
            self.assertEqual(len(result["data"]["allQuestions"]), 1)
            self.assertEqual(len(result["data"]["allFeedbacks"]), 2)
            self.assertEqual(result["data"]["allQuizzes"], [{"name": "Europe", "category": "study"}])

    def test_unauthenticated_client_reads_nested_quiz(self):
        result = graphql(self.unauthenticated_client, QUIZ_QUERY, {"id": str(QuizListsTestCase.test_quiz.pk)})
        self.assertNotIn("errors", result)

        quiz = result["data"]["quiz"]
        self.assertEqual(quiz["name"], "Europe")
        self.assertEqual(quiz["questions"][0]["correct"], {"name": "Paris"})
        self.assertEqual(
            sorted(answer["name"] for answer in quiz["questions"][0]["answers"]), ["London", "Paris"])
        self.assertEqual(quiz["feedback"], [{"name": "Nice", "category": "good"}])

    def test_search_and_pagination(self):
        result = graphql(self.unauthenticated_client, """
        query {
          searched: allAnswers(search: "par") { name }
          firstPage: allAnswers(first: 2) { name }
          secondPage: allAnswers(skip: 2, first: 2) { name }
          _allAnswersMeta { count }
        }
        """)
        self.assertNotIn("errors", result)
        self.assertEqual(result["data"]["searched"], [{"name": "Paris"}])
        # Answers are ordered by name
        self.assertEqual(result["data"]["firstPage"], [{"name": "London"}, {"name": "Paris"}])
        self.assertEqual(result["data"]["secondPage"], [{"name": "Rome"}])
        self.assertEqual(result["data"]["_allAnswersMeta"]["count"], 3)

    def test_negative_pagination_is_rejected(self):
        result = graphql(self.unauthenticated_client, "query { allAnswers(first: -1) { name } }")
        self.assertEqual(error_code(result), "VALIDATION_ERROR")

    def test_non_admin_cannot_create_content(self):
        for client in (self.unauthenticated_client, self.authenticated_client):
            for key, (mutation, input_type, data) in CREATE_MUTATIONS.items():
                with self.subTest(list=key):
                    model = {"Answer": Answer, "Question": Question, "Feedback": Feedback, "Quiz": Quiz}[key]
                    before = model.objects.count()
                    result = graphql(
                        client,
                        f"mutation ($data: {input_type}!) {{ {mutation}(data: $data) {{ id }} }}",
                        {"data": data},
                    )
                    self.assertEqual(error_code(result), "ACCESS_DENIED")
                    self.assertEqual(model.objects.count(), before)

    def test_non_admin_cannot_delete_content(self):
        targets = {
            "Answer": QuizListsTestCase.rome,
            "Question": QuizListsTestCase.question_one,
            "Feedback": QuizListsTestCase.feedback_bad,
            "Quiz": QuizListsTestCase.test_quiz,
        }
        for client in (self.unauthenticated_client, self.authenticated_client):
            for key, mutation in DELETE_MUTATIONS.items():
                with self.subTest(list=key):
                    target = targets[key]
                    result = graphql(client, f"mutation ($id: ID!) {{ {mutation}(id: $id) {{ id }} }}",
                                     {"id": str(target.pk)})
                    self.assertEqual(error_code(result), "ACCESS_DENIED")
                    self.assertTrue(type(target).objects.filter(pk=target.pk).exists())

    def test_non_admin_cannot_update_content(self):
        # The ownership filter compares row ids with the user's id, which never match here
        result = graphql(self.authenticated_client, """
        mutation ($id: ID!) { updateAnswer(id: $id, data: {name: "Lyon"}) { name } }
        """, {"id": str(QuizListsTestCase.paris.pk)})
        self.assertEqual(error_code(result), "ACCESS_DENIED")
        self.assertEqual(Answer.objects.get(pk=QuizListsTestCase.paris.pk).name, "Paris")

    def test_admin_creates_content(self):
        for key, (mutation, input_type, data) in CREATE_MUTATIONS.items():
            if key == "Quiz":
                data = self.quiz_data(name="Capitals", category="fun")
            with self.subTest(list=key):
                result = graphql(
                    self.admin_client,
                    f"mutation ($data: {input_type}!) {{ {mutation}(data: $data) {{ id }} }}",
                    {"data": data},
                )
                self.assertNotIn("errors", result)
                self.assertTrue(result["data"][mutation]["id"])

    def test_feedback_category_outside_options_fails(self):
        result = graphql(self.admin_client, CREATE_FEEDBACK_MUTATION, {
            "data": {"description": "Wow", "category": "amazing"},
        })
        self.assertEqual(error_code(result), "VALIDATION_ERROR")
        self.assertIn("category", result["errors"][0]["extensions"]["fields"])
        self.assertFalse(Feedback.objects.filter(description="Wow").exists())

    def test_feedback_category_in_options_succeeds(self):
        result = graphql(self.admin_client, CREATE_FEEDBACK_MUTATION, {
            "data": {"description": "Wow", "category": "good"},
        })
        self.assertNotIn("errors", result)
        self.assertEqual(result["data"]["createFeedback"]["category"], "good")

    def test_feedback_requires_category_and_description(self):
        result = graphql(self.admin_client, CREATE_FEEDBACK_MUTATION, {"data": {"name": "Empty"}})
        self.assertEqual(error_code(result), "VALIDATION_ERROR")
        fields = result["errors"][0]["extensions"]["fields"]
        self.assertIn("category", fields)
        self.assertIn("description", fields)

    def test_quiz_category_outside_options_fails(self):
        result = graphql(self.admin_client, CREATE_QUIZ_MUTATION, {"data": self.quiz_data(category="serious")})
        self.assertEqual(error_code(result), "VALIDATION_ERROR")
        self.assertIn("category", result["errors"][0]["extensions"]["fields"])

    def test_quiz_without_questions_fails(self):
        data = self.quiz_data()
        del data["questions"]
        result = graphql(self.admin_client, CREATE_QUIZ_MUTATION, {"data": data})
        self.assertEqual(error_code(result), "VALIDATION_ERROR")
        self.assertIn("questions", result["errors"][0]["extensions"]["fields"])
        self.assertFalse(Quiz.objects.filter(name="Geo").exists())

    def test_quiz_with_empty_feedback_fails(self):
        result = graphql(self.admin_client, CREATE_QUIZ_MUTATION, {"data": self.quiz_data(feedback=[])})
        self.assertEqual(error_code(result), "VALIDATION_ERROR")
        self.assertIn("feedback", result["errors"][0]["extensions"]["fields"])
        self.assertFalse(Quiz.objects.filter(name="Geo").exists())

    def test_quiz_with_unknown_question_fails(self):
        result = graphql(self.admin_client, CREATE_QUIZ_MUTATION, {
            "data": self.quiz_data(questions=["00000000-0000-0000-0000-000000000000"]),
        })
        self.assertEqual(error_code(result), "VALIDATION_ERROR")
        self.assertIn("questions", result["errors"][0]["extensions"]["fields"])
        self.assertFalse(Quiz.objects.filter(name="Geo").exists())

    def test_admin_creates_quiz_readable_by_anyone_and_not_deletable_by_others(self):
        result = graphql(self.admin_client, CREATE_QUIZ_MUTATION, {"data": self.quiz_data()})
        self.assertNotIn("errors", result)
        created = result["data"]["createQuiz"]
        self.assertEqual(created["name"], "Geo")
        self.assertEqual(created["category"], "study")
        self.assertEqual(created["questions"], [{"id": str(QuizListsTestCase.question_one.pk)}])
        self.assertEqual(created["feedback"], [{"id": str(QuizListsTestCase.feedback_good.pk)}])

        read = graphql(self.unauthenticated_client, QUIZ_QUERY, {"id": created["id"]})
        self.assertNotIn("errors", read)
        self.assertEqual(read["data"]["quiz"]["name"], "Geo")

        deleted = graphql(self.authenticated_client, "mutation ($id: ID!) { deleteQuiz(id: $id) { id } }",
                          {"id": created["id"]})
        self.assertEqual(error_code(deleted), "ACCESS_DENIED")
        self.assertTrue(Quiz.objects.filter(pk=created["id"]).exists())

    def test_admin_updates_quiz(self):
        result = graphql(self.admin_client, """
        mutation ($id: ID!, $data: QuizInput) {
          updateQuiz(id: $id, data: $data) { name category feedback { name } }
        }
        """, {
            "id": str(QuizListsTestCase.test_quiz.pk),
            "data": {"category": "fun", "feedback": [str(QuizListsTestCase.feedback_bad.pk)]},
        })
        self.assertNotIn("errors", result)
        self.assertEqual(result["data"]["updateQuiz"], {
            "name": "Europe", "category": "fun", "feedback": [{"name": "Oops"}],
        })

    def test_admin_cannot_clear_quiz_questions(self):
        result = graphql(self.admin_client, """
        mutation ($id: ID!) { updateQuiz(id: $id, data: {questions: []}) { id } }
        """, {"id": str(QuizListsTestCase.test_quiz.pk)})
        self.assertEqual(error_code(result), "VALIDATION_ERROR")
        self.assertEqual(QuizListsTestCase.test_quiz.questions.count(), 1)

    def test_question_correct_answer_must_be_one_of_answers(self):
        result = graphql(self.admin_client, CREATE_QUESTION_MUTATION, {
            "data": {
                "description": "Capital of Italy?",
                "answers": [str(QuizListsTestCase.paris.pk), str(QuizListsTestCase.london.pk)],
                "correct": str(QuizListsTestCase.rome.pk),
            },
        })
        self.assertEqual(error_code(result), "VALIDATION_ERROR")
        self.assertIn("correct", result["errors"][0]["extensions"]["fields"])
        self.assertFalse(Question.objects.filter(description="Capital of Italy?").exists())

    def test_question_with_correct_answer(self):
        result = graphql(self.admin_client, CREATE_QUESTION_MUTATION, {
            "data": {
                "description": "Capital of Italy?",
                "answers": [str(QuizListsTestCase.rome.pk), str(QuizListsTestCase.paris.pk)],
                "correct": str(QuizListsTestCase.rome.pk),
            },
        })
        self.assertNotIn("errors", result)
        self.assertEqual(result["data"]["createQuestion"]["correct"], {"id": str(QuizListsTestCase.rome.pk)})

    def test_update_correct_checks_stored_answers(self):
        question_id = str(QuizListsTestCase.question_one.pk)

        result = graphql(self.admin_client, UPDATE_QUESTION_MUTATION, {
            "id": question_id, "data": {"correct": str(QuizListsTestCase.london.pk)},
        })
        self.assertNotIn("errors", result)
        self.assertEqual(result["data"]["updateQuestion"]["correct"], {"name": "London"})

        result = graphql(self.admin_client, UPDATE_QUESTION_MUTATION, {
            "id": question_id, "data": {"correct": str(QuizListsTestCase.rome.pk)},
        })
        self.assertEqual(error_code(result), "VALIDATION_ERROR")

    def test_deleting_correct_answer_clears_it(self):
        result = graphql(self.admin_client, "mutation ($id: ID!) { deleteAnswer(id: $id) { id name } }",
                         {"id": str(QuizListsTestCase.paris.pk)})
        self.assertNotIn("errors", result)
        self.assertEqual(result["data"]["deleteAnswer"], {"id": str(QuizListsTestCase.paris.pk), "name": "Paris"})

        question = Question.objects.get(pk=QuizListsTestCase.question_one.pk)
        self.assertIsNone(question.correct)
        self.assertEqual(list(question.answers.all()), [QuizListsTestCase.london])

    def test_malformed_id_is_denied(self):
        result = graphql(self.unauthenticated_client, QUIZ_QUERY, {"id": "not-a-quiz"})
        self.assertEqual(error_code(result), "ACCESS_DENIED")
        self.assertIsNone(result["data"]["quiz"])

    def test_image_must_be_url(self):
        result = graphql(self.admin_client, CREATE_FEEDBACK_MUTATION, {
            "data": {"description": "Nice", "category": "ok", "image": "not a url"},
        })
        self.assertEqual(error_code(result), "VALIDATION_ERROR")
        self.assertIn("image", result["errors"][0]["extensions"]["fields"])


class QuizAdminTestCase(TestCase):

    @classmethod
    def setUpTestData(cls):
        cls.admin = User.objects.create_user(email="admin@quiz.test", name="Admin", password="adminpass123",
                                             is_admin=True)
        cls.paris = Answer.objects.create(name="Paris")
        cls.london = Answer.objects.create(name="London")
        cls.question = Question.objects.create(name="France", description="Capital of France?")
        cls.question.answers.set([cls.paris, cls.london])
        cls.feedback = Feedback.objects.create(description="Good job", category="excellent")
        cls.test_quiz = Quiz.objects.create(name="Europe", category="fun")
        cls.test_quiz.questions.set([cls.question])
        cls.test_quiz.feedback.set([cls.feedback])

    def setUp(self):
        self.admin_client = Client()
        self.admin_client.force_login(QuizAdminTestCase.admin)

    def test_admin_changelists(self):
        for name in ("answer", "question", "feedback", "quiz"):
            with self.subTest(model=name):
                response = self.admin_client.get(reverse(f"admin:quiz_{name}_changelist"))
                self.assertEqual(response.status_code, 200)

    def test_quiz_changelist_counts_questions(self):
        response = self.admin_client.get(reverse("admin:quiz_quiz_changelist"))
        self.assertContains(response, "Europe")
        self.assertEqual(response.context["cl"].result_list[0].num_questions, 1)

    def test_question_admin_form_rejects_foreign_correct_answer(self):
        rome = Answer.objects.create(name="Rome")
        form = QuestionAdminForm(data={
            "description": "Capital of France?",
            "answers": [QuizAdminTestCase.paris.pk, QuizAdminTestCase.london.pk],
            "correct": rome.pk,
        })
        self.assertFalse(form.is_valid())
        self.assertIn("correct", form.errors)

    def test_question_admin_form_accepts_listed_correct_answer(self):
        form = QuestionAdminForm(data={
            "description": "Capital of France?",
            "answers": [QuizAdminTestCase.paris.pk, QuizAdminTestCase.london.pk],
            "correct": QuizAdminTestCase.paris.pk,
        })
        self.assertTrue(form.is_valid(), form.errors)
