from django.core.management.base import BaseCommand

from homepros.models import ContractorProfile


class Command(BaseCommand):
    help = 'Recalculate contractor rating aggregates based on reviews.'

    def handle(self, *args, **options):
        for contractor in ContractorProfile.objects.all():
            contractor.recalc_ratings()
            self.stdout.write(
                self.style.SUCCESS(f'Updated {contractor.business_name}: {contractor.avg_rating} ({contractor.total_reviews})')
            )
