from django.conf import settings
from django.core.management.base import BaseCommand, CommandError

from bookstore.models import User


class Command(BaseCommand):
    help = "Create the admin account from ADMIN_EMAIL / ADMIN_PASSWORD if it does not exist yet."

    def add_arguments(self, parser):
        parser.add_argument("--email", default=None)
        parser.add_argument("--password", default=None)
        parser.add_argument("--name", default=None)

    def handle(self, *args, **options):
        email = (options["email"] or settings.ADMIN_EMAIL or "").strip().lower()
        password = options["password"] or settings.ADMIN_PASSWORD
        name = options["name"] or settings.ADMIN_NAME

        if not email or not password:
            raise CommandError("ADMIN_EMAIL and ADMIN_PASSWORD must be set (or pass --email/--password).")

        user = User.objects.filter(email=email).first()
        if user:
            if user.role != "admin":
                user.role = "admin"
                user.is_staff = True
                user.save(update_fields=["role", "is_staff", "updated_at"])
                self.stdout.write(self.style.SUCCESS(f"Promoted {email} to admin."))
            else:
                self.stdout.write(f"Admin {email} already exists.")
            return

        User.objects.create_superuser(email=email, password=password, name=name)
        self.stdout.write(self.style.SUCCESS(f"Admin {email} created."))
