from django.contrib.auth.models import User
from rest_framework import serializers

from . import grades
from .models import Answer, InterviewSession, Question, Rating, Subscription


class UserSerializer(serializers.ModelSerializer):
    """
    Serializer for User model to display user-related data in InterviewSessionSerializer.
    """
    class Meta:
        model = User
        fields = ['id', 'username', 'email', 'first_name', 'last_name']


class SubscriptionSerializer(serializers.ModelSerializer):
    class Meta:
        model = Subscription
        fields = ['status', 'starter_interviews_used', 'starter_expires_at']
        read_only_fields = fields


class QuestionSerializer(serializers.ModelSerializer):
    competency_label = serializers.SerializerMethodField()

    class Meta:
        model = Question
        fields = ['id', 'interview', 'competency', 'competency_label', 'question_text', 'difficulty', 'order']
        read_only_fields = fields

    def get_competency_label(self, obj):
        return grades.get_framework(obj.interview.framework).label(obj.competency)


class RatingSerializer(serializers.ModelSerializer):
    """
    Serializer for Rating model. Scores are stored out of 10; the percentage is
    derived here for the pass/fail displays.
    """
    score_percentage = serializers.IntegerField(read_only=True)

    class Meta:
        model = Rating
        fields = [
            'id', 'answer', 'overall_score', 'score_percentage', 'competency_scores',
            'star_method_analysis', 'feedback', 'strengths', 'improvement_areas',
            'improved_answer', 'rated_at',
        ]
        read_only_fields = fields


class AnswerSerializer(serializers.ModelSerializer):
    rating = RatingSerializer(read_only=True)

    class Meta:
        model = Answer
        fields = ['id', 'interview', 'question', 'answer_text', 'time_spent_seconds', 'answered_at', 'rating']
        read_only_fields = fields


class InterviewSessionSerializer(serializers.ModelSerializer):
    """
    Serializer for InterviewSession model.
    """
    user = UserSerializer(read_only=True)
    passed = serializers.SerializerMethodField()

    class Meta:
        model = InterviewSession
        fields = [
            'id', 'user', 'job_title', 'grade', 'framework', 'total_questions',
            'current_question_index', 'completed_questions', 'average_score', 'passed',
            'status', 'is_active', 'started_at', 'completed_at',
        ]
        read_only_fields = fields

    def get_passed(self, obj):
        return grades.passed(obj.grade, obj.average_score)


class StartInterviewSerializer(serializers.Serializer):
    """
    Validates the request body of a new practice interview.
    """
    grade = serializers.CharField(default=grades.DEFAULT_GRADE)
    framework = serializers.ChoiceField(choices=list(grades.FRAMEWORKS), default="old")
    competencies = serializers.ListField(child=serializers.CharField(), required=False, default=list)
    job_title = serializers.CharField(required=False, allow_blank=True, max_length=255)

    def validate_grade(self, value):
        """
        Custom validation for the `grade` field.
        """
        if value.lower() not in grades.GRADES:
            raise serializers.ValidationError(
                f"Invalid grade: {value}. Allowed values are {', '.join(grades.GRADES)}."
            )
        return value.lower()


class SubmitAnswerSerializer(serializers.Serializer):
    interview_id = serializers.UUIDField()
    question_id = serializers.UUIDField()
    answer_text = serializers.CharField(allow_blank=True, trim_whitespace=False)
    time_spent_seconds = serializers.IntegerField(min_value=0, required=False, default=0)


# AI response schemas. Provider output is validated here before any of it
# reaches the models.

class GeneratedQuestionSerializer(serializers.Serializer):
    competency = serializers.CharField()
    question_text = serializers.CharField()
    difficulty = serializers.ChoiceField(
        choices=[choice for choice, _ in Question.DIFFICULTY_CHOICES], default="intermediate"
    )


class QuestionSetSerializer(serializers.Serializer):
    questions = GeneratedQuestionSerializer(many=True, allow_empty=False)


class StarAnalysisSerializer(serializers.Serializer):
    situation = serializers.FloatField(min_value=0, max_value=10)
    task = serializers.FloatField(min_value=0, max_value=10)
    action = serializers.FloatField(min_value=0, max_value=10)
    result = serializers.FloatField(min_value=0, max_value=10)

    def validate(self, attrs):
        return {part: round(score, 1) for part, score in attrs.items()}


class EvaluationSerializer(serializers.Serializer):
    overall_score = serializers.FloatField(min_value=0, max_value=10)
    competency_scores = serializers.DictField(child=serializers.FloatField(min_value=0, max_value=10))
    star_method_analysis = StarAnalysisSerializer()
    feedback = serializers.CharField()
    strengths = serializers.ListField(child=serializers.CharField(), allow_empty=True)
    improvement_areas = serializers.ListField(child=serializers.CharField(), allow_empty=True)
    improved_answer = serializers.CharField(allow_blank=True)

    def validate_overall_score(self, value):
        return round(value, 1)

    def validate_competency_scores(self, value):
        return {competency: round(score, 1) for competency, score in value.items()}
