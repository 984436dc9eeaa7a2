from django.contrib import admin

from apps.common.admin import BaseModelAdmin

from .models import Course, LectureRecording, LiveClass, TeacherCourse


class TeacherCourseInline(admin.TabularInline):
    model = TeacherCourse
    extra = 0


@admin.register(Course)
class CourseAdmin(BaseModelAdmin):
    list_display = ("title", "price", "is_published")
    search_fields = ("title",)
    list_filter = ("is_published",)
    inlines = [TeacherCourseInline]


@admin.register(LectureRecording)
class LectureRecordingAdmin(BaseModelAdmin):
    list_display = ("title", "course", "teacher", "is_published", "is_demo", "created_at")
    list_filter = ("is_published", "is_demo")
    search_fields = ("title", "course__title")


@admin.register(LiveClass)
class LiveClassAdmin(BaseModelAdmin):
    list_display = ("title", "course", "scheduled_at", "duration_minutes", "is_published", "is_demo")
    list_filter = ("is_published", "is_demo")
    search_fields = ("title", "course__title")
