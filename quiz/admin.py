from django.contrib import admin
from django.db.models import Count

from access.admin import ListModelAdmin
from quiz.forms import QuestionAdminForm
from quiz.models import Answer, Feedback, Question, Quiz


class AnswerAdmin(ListModelAdmin):
    list_display = ("name", "description")
    search_fields = ("name",)


class QuestionAdmin(ListModelAdmin):
    form = QuestionAdminForm
    list_display = ("name", "description", "correct")
    search_fields = ("name", "description")
    filter_horizontal = ("answers",)


class FeedbackAdmin(ListModelAdmin):
    list_display = ("name", "category")
    list_filter = ("category",)
    search_fields = ("name", "description")


class QuizAdmin(ListModelAdmin):
    list_display = ("name", "category", "question_count")
    list_filter = ("category",)
    search_fields = ("name",)
    filter_horizontal = ("questions", "feedback")

    def get_queryset(self, request):
        return super().get_queryset(request).annotate(num_questions=Count("questions", distinct=True))

    @admin.display(ordering="num_questions", description="Questions")
    def question_count(self, obj):
        return obj.num_questions


admin.site.register(Answer, AnswerAdmin)
admin.site.register(Question, QuestionAdmin)
admin.site.register(Feedback, FeedbackAdmin)
admin.site.register(Quiz, QuizAdmin)
