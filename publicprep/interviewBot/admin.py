from django.contrib import admin

from .models import Answer, InterviewSession, Question, Rating, Subscription


@admin.register(Subscription)
class SubscriptionAdmin(admin.ModelAdmin):
    list_display = ("user", "status", "starter_interviews_used", "starter_expires_at", "updated_at")
    list_filter = ("status",)
    search_fields = ("user__username", "user__email")


class QuestionInline(admin.TabularInline):
    model = Question
    extra = 0
    fields = ("order", "competency", "difficulty", "question_text")
    readonly_fields = fields


@admin.register(InterviewSession)
class InterviewSessionAdmin(admin.ModelAdmin):
    list_display = (
        "job_title", "user", "grade", "framework", "status",
        "completed_questions", "total_questions", "average_score", "started_at",
    )
    list_filter = ("status", "grade", "framework")
    search_fields = ("job_title", "user__username", "user__email")
    readonly_fields = ("current_question_index", "completed_questions", "average_score", "completed_at")
    inlines = [QuestionInline]


@admin.register(Answer)
class AnswerAdmin(admin.ModelAdmin):
    list_display = ("question", "interview", "time_spent_seconds", "answered_at")
    search_fields = ("answer_text",)


@admin.register(Rating)
class RatingAdmin(admin.ModelAdmin):
    list_display = ("answer", "overall_score", "rated_at")
