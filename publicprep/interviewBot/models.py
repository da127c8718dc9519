import uuid

from django.contrib.auth.models import User
from django.db import models
from django.db.models import F, Q
from django.utils import timezone


class Subscription(models.Model):
    FREE = "free"
    STARTER = "starter"
    PREMIUM = "premium"
    CANCELED = "canceled"
    PAST_DUE = "past_due"
    STATUS_CHOICES = [
        (FREE, "Free"),
        (STARTER, "Starter"),
        (PREMIUM, "Premium"),
        (CANCELED, "Canceled"),
        (PAST_DUE, "Past due"),
    ]

    user = models.OneToOneField(User, on_delete=models.CASCADE, related_name="subscription")
    status = models.CharField(max_length=20, choices=STATUS_CHOICES, default=FREE)
    starter_interviews_used = models.PositiveIntegerField(default=0)
    starter_expires_at = models.DateTimeField(null=True, blank=True)
    updated_at = models.DateTimeField(auto_now=True)

    def __str__(self):
        return f"{self.user} ({self.status})"

    @property
    def starter_expired(self):
        return (
            self.status == self.STARTER
            and self.starter_expires_at is not None
            and self.starter_expires_at < timezone.now()
        )


class InterviewSession(models.Model):
    CREATED = "created"
    IN_PROGRESS = "in_progress"
    COMPLETED = "completed"
    ABANDONED = "abandoned"
    STATUS_CHOICES = [
        (CREATED, "Created"),
        (IN_PROGRESS, "In progress"),
        (COMPLETED, "Completed"),
        (ABANDONED, "Abandoned"),
    ]

    FRAMEWORK_CHOICES = [
        ("old", "Traditional framework (6 competencies)"),
        ("new", "Capability framework (4 areas)"),
    ]

    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    user = models.ForeignKey(User, on_delete=models.CASCADE, related_name="interviews")
    job_title = models.CharField(max_length=255, default="Interview Practice")
    grade = models.CharField(max_length=8, default="eo")
    framework = models.CharField(max_length=8, choices=FRAMEWORK_CHOICES, default="old")
    total_questions = models.PositiveIntegerField()
    current_question_index = models.PositiveIntegerField(default=0)
    completed_questions = models.PositiveIntegerField(default=0)
    average_score = models.FloatField(null=True, blank=True)  # 0-10
    status = models.CharField(max_length=20, choices=STATUS_CHOICES, default=CREATED)
    is_active = models.BooleanField(default=True)
    started_at = models.DateTimeField(auto_now_add=True)
    completed_at = models.DateTimeField(null=True, blank=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        ordering = ["-started_at"]
        constraints = [
            models.CheckConstraint(
                condition=Q(current_question_index__lte=F("total_questions")),
                name="interview_index_within_total",
            ),
            models.CheckConstraint(
                condition=Q(completed_questions__lte=F("total_questions")),
                name="interview_completed_within_total",
            ),
        ]

    def __str__(self):
        return f"{self.job_title} ({self.grade.upper()}) for {self.user}"

    @property
    def is_complete(self):
        return self.completed_at is not None


class Question(models.Model):
    DIFFICULTY_CHOICES = [
        ("beginner", "Beginner"),
        ("intermediate", "Intermediate"),
        ("advanced", "Advanced"),
    ]

    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    interview = models.ForeignKey(InterviewSession, on_delete=models.CASCADE, related_name="questions")
    competency = models.CharField(max_length=100)
    question_text = models.TextField()
    difficulty = models.CharField(max_length=20, choices=DIFFICULTY_CHOICES, default="intermediate")
    order = models.PositiveIntegerField()
    generated_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        ordering = ["order"]
        constraints = [
            models.UniqueConstraint(fields=["interview", "order"], name="question_order_unique_per_interview"),
        ]

    def __str__(self):
        return f"Q{self.order + 1} [{self.competency}]"


class Answer(models.Model):
    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    interview = models.ForeignKey(InterviewSession, on_delete=models.CASCADE, related_name="answers")
    question = models.ForeignKey(Question, on_delete=models.CASCADE, related_name="answers")
    answer_text = models.TextField()
    time_spent_seconds = models.PositiveIntegerField(default=0)
    answered_at = models.DateTimeField(default=timezone.now)

    class Meta:
        ordering = ["-answered_at"]
        indexes = [
            models.Index(fields=["question", "-answered_at"], name="answer_question_latest_idx"),
        ]

    def __str__(self):
        return f"Answer to {self.question_id} at {self.answered_at:%Y-%m-%d %H:%M}"


class Rating(models.Model):
    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    answer = models.OneToOneField(Answer, on_delete=models.CASCADE, related_name="rating")
    overall_score = models.FloatField()  # 0-10, one decimal
    competency_scores = models.JSONField(default=dict, blank=True)
    star_method_analysis = models.JSONField(default=dict, blank=True)
    feedback = models.TextField(blank=True)
    strengths = models.JSONField(default=list, blank=True)
    improvement_areas = models.JSONField(default=list, blank=True)
    improved_answer = models.TextField(blank=True)
    rated_at = models.DateTimeField(auto_now_add=True)

    def __str__(self):
        return f"{self.overall_score}/10 for answer {self.answer_id}"

    @property
    def score_percentage(self):
        return round(self.overall_score * 10)
