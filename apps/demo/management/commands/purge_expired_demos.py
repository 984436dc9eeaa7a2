from django.core.management.base import BaseCommand, CommandError

from apps.demo.services import expire_demo_enrollments, prune_expired_grants


class Command(BaseCommand):
    help = "모든 데모 권한이 만료된 과정의 데모 등록을 정리하고, 선택적으로 오래된 데모 권한을 삭제합니다."

    def add_arguments(self, parser):
        parser.add_argument(
            "--prune-days",
            type=int,
            default=None,
            help="만료 후 N일이 지난 데모 권한을 삭제 (삭제된 사용자는 다시 체험 가능)",
        )

    def handle(self, *args, **options):
        prune_days = options["prune_days"]
        if prune_days is not None and prune_days < 0:
            raise CommandError("--prune-days는 0 이상이어야 합니다.")

        enrollments = expire_demo_enrollments()
        self.stdout.write(f"만료된 데모 등록 {enrollments}건 삭제")

        if prune_days is not None:
            grants = prune_expired_grants(prune_days)
            self.stdout.write(f"오래된 데모 권한 {grants}건 삭제")

        self.stdout.write(self.style.SUCCESS("데모 정리 완료"))
