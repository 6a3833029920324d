from django.core.exceptions import ValidationError


def validate_correct_answer(correct_id, answer_ids):
    """The correct answer of a question has to be one of its answers."""
    if correct_id is None:
        return
    if correct_id not in set(answer_ids):
        raise ValidationError({"correct": ["The correct answer must be one of the question's answers."]})
