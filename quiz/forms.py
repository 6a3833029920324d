from django import forms

from quiz.models import Question
from quiz.validators import validate_correct_answer


class QuestionAdminForm(forms.ModelForm):

    class Meta:
        model = Question
        fields = ("name", "image", "description", "answers", "correct")

    def clean(self):
        cleaned_data = super().clean()
        correct = cleaned_data.get("correct")
        answers = cleaned_data.get("answers")

        if correct is not None and answers is not None:
            try:
                validate_correct_answer(correct.pk, [answer.pk for answer in answers])
            except forms.ValidationError as e:
                self.add_error("correct", e.error_dict["correct"])
        return cleaned_data
