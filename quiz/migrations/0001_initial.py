import uuid

import django.db.models.deletion
from django.db import migrations, models


class Migration(migrations.Migration):

    initial = True

    dependencies = []

    operations = [
        migrations.CreateModel(
            name="Answer",
            fields=[
                ("id", models.UUIDField(default=uuid.uuid4, editable=False, primary_key=True, serialize=False)),
                ("name", models.CharField(max_length=255)),
                ("description", models.TextField(blank=True)),
            ],
            options={
                "ordering": ["name"],
            },
        ),
        migrations.CreateModel(
            name="Feedback",
            fields=[
                ("id", models.UUIDField(default=uuid.uuid4, editable=False, primary_key=True, serialize=False)),
                ("name", models.CharField(blank=True, max_length=255)),
                ("image", models.URLField(blank=True, max_length=2048)),
                ("description", models.TextField()),
                ("category", models.CharField(
                    choices=[
                        ("terrible", "Terrible"),
                        ("bad", "Bad"),
                        ("ok", "Ok"),
                        ("good", "Good"),
                        ("excellent", "Excellent"),
                    ],
                    max_length=16,
                )),
            ],
            options={
                "ordering": ["name"],
                "verbose_name_plural": "feedback",
            },
        ),
        migrations.CreateModel(
            name="Question",
            fields=[
                ("id", models.UUIDField(default=uuid.uuid4, editable=False, primary_key=True, serialize=False)),
                ("name", models.CharField(blank=True, max_length=255)),
                ("image", models.URLField(blank=True, max_length=2048)),
                ("description", models.TextField()),
                ("answers", models.ManyToManyField(blank=True, related_name="questions", to="quiz.answer")),
                ("correct", models.ForeignKey(
                    blank=True,
                    null=True,
                    on_delete=django.db.models.deletion.SET_NULL,
                    related_name="+",
                    to="quiz.answer",
                )),
            ],
            options={
                "ordering": ["name"],
            },
        ),
        migrations.CreateModel(
            name="Quiz",
            fields=[
                ("id", models.UUIDField(default=uuid.uuid4, editable=False, primary_key=True, serialize=False)),
                ("name", models.CharField(max_length=255)),
                ("image", models.URLField(blank=True, max_length=2048)),
                ("description", models.TextField(blank=True)),
                ("category", models.CharField(choices=[("study", "Study"), ("fun", "Fun")], max_length=16)),
                ("questions", models.ManyToManyField(related_name="quizzes", to="quiz.question")),
                ("feedback", models.ManyToManyField(related_name="quizzes", to="quiz.feedback")),
            ],
            options={
                "ordering": ["name"],
                "verbose_name_plural": "quizzes",
            },
        ),
    ]
