"""
Management command to create sample specials for trying the API.

Usage:
    python manage.py create_sample_specials [--clear]

This creates:
- 2 users (admin staff member, member)
- 4 directory businesses
- 6 specials (limited, unlimited, per-visit, expiring soon, upcoming, sold out)
- A few claims, made through the claim service
"""

from datetime import timedelta
from decimal import Decimal

from django.core.management.base import BaseCommand
from django.db import transaction
from django.utils import timezone

from apps.accounts.models import User
from apps.directory.models import Business, EntityType
from apps.specials.models import DiscountType, Special, SpecialClaim, SpecialEvent, SpecialMedia
from apps.specials.services import Claimant, claim_special


class Command(BaseCommand):
    help = 'Create sample specials for testing the API'

    def add_arguments(self, parser):
        parser.add_argument(
            '--clear',
            action='store_true',
            help='Clear existing specials and businesses before creating new sample data',
        )

    @transaction.atomic
    def handle(self, *args, **options):
        if options['clear']:
            self.stdout.write('Clearing existing data...')
            self.clear_data()

        self.stdout.write('Creating sample data...')

        users = self.create_users()
        businesses = self.create_businesses()
        specials = self.create_specials(businesses)
        self.create_claims(users, specials)

        self.stdout.write(self.style.SUCCESS('Sample specials created successfully!'))
        self.stdout.write('')
        self.stdout.write('Test accounts:')
        self.stdout.write('  admin@example.com / admin123 (staff, can redeem claims)')
        self.stdout.write('  member@example.com / password123')
        self.stdout.write('Guests: send any X-Guest-Session header value')

    def clear_data(self):
        """Clear specials data from the database."""
        SpecialEvent.objects.all().delete()
        SpecialClaim.objects.all().delete()
        SpecialMedia.objects.all().delete()
        Special.objects.all().delete()
        Business.objects.all().delete()

    def create_users(self):
        """Create test users."""
        self.stdout.write('  Creating users...')

        admin, _ = User.objects.get_or_create(
            email='admin@example.com',
            defaults={
                'display_name': 'Admin User',
                'is_staff': True,
                'is_superuser': True,
            }
        )
        admin.set_password('admin123')
        admin.save()

        member, _ = User.objects.get_or_create(
            email='member@example.com',
            defaults={'display_name': 'Community Member'}
        )
        member.set_password('password123')
        member.save()

        return {'admin': admin, 'member': member}

    def create_businesses(self):
        """Create directory businesses."""
        self.stdout.write('  Creating businesses...')

        rows = [
            ('deli', 'Kosher Corner Deli', EntityType.RESTAURANT, 'Brooklyn', Decimal('4.70')),
            ('pizza', 'Jerusalem Pizza', EntityType.RESTAURANT, 'Queens', Decimal('3.90')),
            ('market', 'Shalom Market', EntityType.STORE, 'Brooklyn', Decimal('4.20')),
            ('books', 'Sefer Books & Gifts', EntityType.STORE, 'Monsey', None),
        ]

        businesses = {}
        for key, name, entity_type, city, rating in rows:
            businesses[key], _ = Business.objects.get_or_create(
                name=name,
                defaults={
                    'entity_type': entity_type,
                    'city': city,
                    'state': 'NY',
                    'rating': rating,
                }
            )
        return businesses

    def create_specials(self, businesses):
        """Create specials covering each availability state."""
        self.stdout.write('  Creating specials...')
        now = timezone.now()

        specials = {
            'limited': Special.objects.create(
                business=businesses['deli'],
                title='Free dessert with any entree',
                discount_type=DiscountType.FREE_ITEM,
                discount_label='Free dessert',
                valid_from=now - timedelta(days=2),
                valid_until=now + timedelta(days=20),
                max_claims_total=25,
                priority=10,
            ),
            'unlimited': Special.objects.create(
                business=businesses['pizza'],
                title='10% off every pie',
                discount_type=DiscountType.PERCENTAGE,
                discount_value=Decimal('10'),
                discount_label='10% off',
                valid_from=now - timedelta(days=7),
                valid_until=now + timedelta(days=60),
                priority=5,
            ),
            'per_visit': Special.objects.create(
                business=businesses['market'],
                title='$5 off challah orders over $30',
                discount_type=DiscountType.FIXED_AMOUNT,
                discount_value=Decimal('5'),
                valid_from=now - timedelta(days=1),
                valid_until=now + timedelta(days=30),
                max_claims_total=200,
                per_visit=True,
                requires_code=True,
                code_hint='Show this screen at the register',
            ),
            'expiring': Special.objects.create(
                business=businesses['books'],
                title='Buy one get one on children\'s books',
                discount_type=DiscountType.BOGO,
                valid_from=now - timedelta(days=10),
                valid_until=now + timedelta(days=2),
                max_claims_total=50,
            ),
            'upcoming': Special.objects.create(
                business=businesses['deli'],
                title='Grand reopening lunch',
                valid_from=now + timedelta(days=5),
                valid_until=now + timedelta(days=6),
                max_claims_total=100,
            ),
            'sold_out': Special.objects.create(
                business=businesses['pizza'],
                title='First slice free (one winner)',
                discount_type=DiscountType.FREE_ITEM,
                valid_from=now - timedelta(days=1),
                valid_until=now + timedelta(days=3),
                max_claims_total=1,
            ),
        }

        SpecialMedia.objects.create(
            special=specials['limited'],
            url='https://images.example.com/specials/dessert.jpg',
            alt_text='Chocolate babka',
        )
        return specials

    def create_claims(self, users, specials):
        """Create claims through the claim service so capacity rules apply."""
        self.stdout.write('  Creating claims...')

        member = Claimant.for_user(users['member'].id)
        claim_special(special_id=specials['limited'].id, claimant=member)
        claim_special(special_id=specials['per_visit'].id, claimant=member)
        claim_special(special_id=specials['per_visit'].id, claimant=member)

        for n in range(3):
            claim_special(
                special_id=specials['limited'].id,
                claimant=Claimant.for_guest(f'sample-guest-{n}'),
            )

        claim_special(
            special_id=specials['sold_out'].id,
            claimant=Claimant.for_guest('sample-guest-winner'),
        )
