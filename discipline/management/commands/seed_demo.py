from django.core.management.base import BaseCommand, CommandError

from discipline.errors import DomainError
from discipline.fixtures import seed_demo
from discipline.services import DisciplineService


class Command(BaseCommand):
    help = "Load demo users, classes, catalogs and random violation/guidance records."

    def add_arguments(self, parser):
        parser.add_argument("--violations", type=int, default=40, help="Number of random violations.")
        parser.add_argument("--guidance", type=int, default=25, help="Number of random guidance records.")
        parser.add_argument("--seed", type=int, default=None, help="Random seed for repeatable data.")

    def handle(self, *args, **options):
        service = DisciplineService(state={}, delay=0)
        if service.store.users.count():
            raise CommandError("Database already has users; run seed_demo on an empty database.")
        try:
            counts = seed_demo(
                service,
                violations=options["violations"],
                guidance=options["guidance"],
                seed=options["seed"],
            )
        except DomainError as exc:
            raise CommandError(exc.message) from exc

        summary = ", ".join(f"{count} {name}" for name, count in counts.items())
        self.stdout.write(self.style.SUCCESS(f"Demo data loaded: {summary}."))
