from decimal import Decimal

from django.contrib.auth.models import User
from django.core.management.base import BaseCommand

from homepros.models import (
    Availability,
    ContractorProfile,
    ContractorService,
    JobRequest,
    Profile,
    ServiceCategory,
)

CATEGORIES = [
    ('Plumbing', 'Leaks, pipes, fixtures and water heaters'),
    ('Electrical', 'Wiring, panels and lighting'),
    ('Painting', 'Interior and exterior painting'),
    ('Roofing', 'Repairs and replacements'),
    ('General', 'Anything else around the house'),
]


class Command(BaseCommand):
    help = 'Generate demo customers, contractors, categories and open jobs for exploration.'

    def handle(self, *args, **options):
        for name, description in CATEGORIES:
            ServiceCategory.objects.get_or_create(name=name, defaults={'description': description})
        categories = list(ServiceCategory.objects.exclude(name=ServiceCategory.GENERAL))

        customers = []
        for idx in range(1, 4):
            user, _ = User.objects.get_or_create(username=f'customer{idx}', defaults={'email': f'customer{idx}@example.com'})
            user.set_password('password')
            user.save()
            profile, _ = Profile.objects.get_or_create(
                user=user,
                defaults={'email': user.email, 'full_name': f'Customer {idx}', 'user_type': Profile.TYPE_CUSTOMER},
            )
            customers.append(profile)

        for idx in range(1, 4):
            user, _ = User.objects.get_or_create(username=f'contractor{idx}', defaults={'email': f'contractor{idx}@example.com'})
            user.set_password('password')
            user.save()
            Profile.objects.get_or_create(
                user=user,
                defaults={'email': user.email, 'full_name': f'Contractor {idx}', 'user_type': Profile.TYPE_CONTRACTOR},
            )
            contractor, _ = ContractorProfile.objects.get_or_create(
                user=user,
                defaults={
                    'business_name': f'Demo Pros {idx}',
                    'bio': 'Licensed and insured',
                    'years_experience': 2 + idx,
                    'city': 'Austin',
                    'state': 'TX',
                    'hourly_rate': Decimal('45.00') + idx * 10,
                    'status': ContractorProfile.STATUS_APPROVED,
                },
            )
            category = categories[(idx - 1) % len(categories)]
            ContractorService.objects.get_or_create(
                contractor=contractor,
                category=category,
                defaults={'price_range_min': Decimal('100.00'), 'price_range_max': Decimal('1000.00')},
            )
            for weekday in range(5):
                Availability.objects.get_or_create(
                    contractor=contractor,
                    day_of_week=weekday,
                    defaults={'start_time': '08:00', 'end_time': '17:00'},
                )

        for customer, category in zip(customers, categories):
            JobRequest.objects.get_or_create(
                customer=customer,
                title=f'{category.name} help needed',
                defaults={'category': category, 'description': 'Demo job request', 'location': 'Austin, TX'},
            )
        self.stdout.write(self.style.SUCCESS('Demo data generated.'))
