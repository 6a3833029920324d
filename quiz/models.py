import uuid

from django.db import models


class Answer(models.Model):
    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    name = models.CharField(max_length=255)
    description = models.TextField(blank=True)

    class Meta:
        ordering = ["name"]

    def __str__(self):
        return self.name


class Question(models.Model):
    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    name = models.CharField(max_length=255, blank=True)
    image = models.URLField(max_length=2048, blank=True)
    description = models.TextField()
    answers = models.ManyToManyField(Answer, blank=True, related_name="questions")
    # Expected to be one of answers, checked on write
    correct = models.ForeignKey(Answer, null=True, blank=True, on_delete=models.SET_NULL, related_name="+")

    class Meta:
        ordering = ["name"]

    def __str__(self):
        return self.name or self.description[:50]


class Feedback(models.Model):

    class Category(models.TextChoices):
        TERRIBLE = "terrible"
        BAD = "bad"
        OK = "ok"
        GOOD = "good"
        EXCELLENT = "excellent"

    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    name = models.CharField(max_length=255, blank=True)
    image = models.URLField(max_length=2048, blank=True)
    description = models.TextField()
    category = models.CharField(max_length=16, choices=Category.choices)

    class Meta:
        ordering = ["name"]
        verbose_name_plural = "feedback"

    def __str__(self):
        return self.name or f"{self.category}: {self.description[:50]}"


class Quiz(models.Model):

    class Category(models.TextChoices):
        STUDY = "study"
        FUN = "fun"

    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    name = models.CharField(max_length=255)
    image = models.URLField(max_length=2048, blank=True)
    description = models.TextField(blank=True)
    category = models.CharField(max_length=16, choices=Category.choices)
    questions = models.ManyToManyField(Question, related_name="quizzes")
    feedback = models.ManyToManyField(Feedback, related_name="quizzes")

    class Meta:
        ordering = ["name"]
        verbose_name_plural = "quizzes"

    def __str__(self):
        return self.name
