from django.contrib.auth.base_user import BaseUserManager
from django.contrib.auth.models import AbstractBaseUser, PermissionsMixin
from django.db import models

from apps.common.models import BaseModel


class Role(models.TextChoices):
    STUDENT = "student", "Student"
    TEACHER = "teacher", "Teacher"
    ADMIN = "admin", "Admin"
    SUPERADMIN = "superadmin", "Superadmin"


class UserManager(BaseUserManager):
    def active_user(self):
        return self.filter(is_active=True)

    def students(self):
        return self.filter(role=Role.STUDENT, is_active=True)

    def teachers(self):
        return self.filter(role=Role.TEACHER, is_active=True)

    def create_user(self, email, password=None, **extra_fields):
        if not email:
            raise ValueError("이메일 주소는 필수입니다.")
        email = self.normalize_email(email)  # 이메일 정규화
        user = self.model(email=email, **extra_fields)
        if password:
            user.set_password(password)
        else:
            # 인증은 외부 인증 서비스에서 발급한 토큰으로만 처리
            user.set_unusable_password()
        user.save(using=self._db)
        return user

    def create_superuser(self, email, password, **extra_fields):
        extra_fields.setdefault("is_staff", True)
        extra_fields.setdefault("is_superuser", True)
        extra_fields.setdefault("role", Role.SUPERADMIN)
        return self.create_user(email, password, **extra_fields)


class User(BaseModel, AbstractBaseUser, PermissionsMixin):
    email = models.EmailField(unique=True)
    name = models.CharField(max_length=50)
    role = models.CharField(max_length=20, choices=Role.choices, default=Role.STUDENT)
    is_active = models.BooleanField(default=True)
    is_staff = models.BooleanField(default=False)

    # 로그인 식별자는 email
    USERNAME_FIELD = "email"
    REQUIRED_FIELDS = ["name"]

    objects = UserManager()

    @property
    def is_student(self):
        return self.role == Role.STUDENT

    def __str__(self):
        return f"{self.name} <{self.email}>"

    class Meta:
        db_table = "user"
