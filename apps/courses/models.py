from django.conf import settings
from django.db import models

from apps.common.models import BaseModel
from apps.common.utils import delete_file_from_storage


class AccessType(models.TextChoices):
    LECTURE_RECORDING = "lecture_recording", "Lecture recording"
    LIVE_CLASS = "live_class", "Live class"


class Course(BaseModel):
    title = models.CharField(max_length=100)  # 과정명
    description = models.TextField(blank=True)
    price = models.DecimalField(max_digits=10, decimal_places=2, default=0)  # 수강료
    is_published = models.BooleanField(default=False)

    def __str__(self):
        return self.title

    class Meta:
        db_table = "course"


class TeacherCourse(BaseModel):
    """강사에게 배정된 과정"""

    teacher = models.ForeignKey(settings.AUTH_USER_MODEL, on_delete=models.CASCADE, related_name="teaching")
    course = models.ForeignKey(Course, on_delete=models.CASCADE, related_name="teachers")

    class Meta:
        db_table = "teacher_course"
        constraints = [models.UniqueConstraint(fields=["teacher", "course"], name="uniq_teacher_course")]


class DemoResourceQuerySet(models.QuerySet):
    def for_course(self, course_id):
        return self.filter(course_id=course_id)

    def published(self):
        return self.filter(is_published=True)

    def chronological(self):
        return self.order_by("created_at", "id")


class DemoResource(BaseModel):
    """데모 체험 대상이 될 수 있는 강의 자원(녹화 영상, 라이브 수업)의 공통 필드.

    is_demo: 과정에서 데모로 고정된 자원 여부. 과정당 최대 1개.
    """

    course = models.ForeignKey(Course, on_delete=models.CASCADE)
    title = models.CharField(max_length=100)
    is_published = models.BooleanField(default=False)
    is_demo = models.BooleanField(default=False)

    objects = DemoResourceQuerySet.as_manager()

    access_type = None

    def __str__(self):
        return f"{self.course.title} - {self.title}"

    class Meta:
        abstract = True


class LectureRecording(DemoResource):
    teacher = models.ForeignKey(settings.AUTH_USER_MODEL, on_delete=models.SET_NULL, null=True, blank=True)
    description = models.TextField(blank=True)
    video_key = models.CharField(max_length=500, blank=True)  # Object Storage key
    duration_seconds = models.PositiveIntegerField(default=0)

    access_type = AccessType.LECTURE_RECORDING

    def save(self, *args, **kwargs):
        """영상 교체 시 기존 파일 삭제"""
        if self.pk:
            old_key = LectureRecording.objects.filter(pk=self.pk).values_list("video_key", flat=True).first()
            if old_key and old_key != self.video_key:
                delete_file_from_storage(old_key)  # 기존 파일 삭제

        super().save(*args, **kwargs)

    def delete(self, *args, **kwargs):
        """Object Storage에서도 파일 삭제"""
        if self.video_key:
            delete_file_from_storage(self.video_key)
        return super().delete(*args, **kwargs)

    class Meta:
        db_table = "lecture_recording"
        constraints = [
            models.UniqueConstraint(
                fields=["course"], condition=models.Q(is_demo=True), name="uniq_demo_recording_per_course"
            )
        ]


class LiveClass(DemoResource):
    teacher = models.ForeignKey(settings.AUTH_USER_MODEL, on_delete=models.SET_NULL, null=True, blank=True)
    scheduled_at = models.DateTimeField()
    duration_minutes = models.PositiveSmallIntegerField(default=60)
    meeting_url = models.URLField(blank=True)

    access_type = AccessType.LIVE_CLASS

    class Meta:
        db_table = "live_class"
        constraints = [
            models.UniqueConstraint(
                fields=["course"], condition=models.Q(is_demo=True), name="uniq_demo_live_class_per_course"
            )
        ]


RESOURCE_MODELS = {
    AccessType.LECTURE_RECORDING: LectureRecording,
    AccessType.LIVE_CLASS: LiveClass,
}


def resource_model_for(access_type):
    """access_type에 해당하는 자원 모델. 알 수 없는 값이면 ValueError"""
    return RESOURCE_MODELS[AccessType(access_type)]
