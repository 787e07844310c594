import pytest
from datetime import timedelta
from django.utils import timezone
from rest_framework.test import APIClient
from rest_framework_simplejwt.tokens import RefreshToken
from apps.accounts.models import User
from apps.directory.models import Business, EntityType
from apps.specials.models import Special, SpecialMedia
from apps.specials.services import Claimant


@pytest.fixture
def api_client():
    """Return an unauthenticated API client."""
    return APIClient()


@pytest.fixture
def guest_client():
    """Return an API client carrying a guest session header."""
    client = APIClient()
    client.credentials(HTTP_X_GUEST_SESSION='guest-session-1')
    return client


@pytest.fixture
def claim_user(db):
    """Create and return a signed-in member."""
    return User.objects.create_user(
        email='member@example.com',
        password='TestPass123!',
        display_name='Community Member',
    )


@pytest.fixture
def claim_other_user(db):
    """Create and return another member."""
    return User.objects.create_user(
        email='other_member@example.com',
        password='TestPass123!',
        display_name='Other Member',
    )


@pytest.fixture
def staff_user(db):
    """Create and return a staff member allowed to redeem claims."""
    return User.objects.create_user(
        email='staff@example.com',
        password='TestPass123!',
        is_staff=True,
    )


def _client_for(user):
    client = APIClient()
    refresh = RefreshToken.for_user(user)
    client.credentials(HTTP_AUTHORIZATION=f'Bearer {refresh.access_token}')
    return client


@pytest.fixture
def auth_client(claim_user):
    """Return API client authenticated as claim_user."""
    return _client_for(claim_user)


@pytest.fixture
def other_client(claim_other_user):
    """Return API client authenticated as claim_other_user."""
    return _client_for(claim_other_user)


@pytest.fixture
def staff_client(staff_user):
    """Return API client authenticated as staff_user."""
    return _client_for(staff_user)


@pytest.fixture
def user_claimant(claim_user):
    return Claimant.for_user(claim_user.id)


@pytest.fixture
def business(db):
    """Create and return a directory business."""
    return Business.objects.create(
        name='Kosher Corner Deli',
        entity_type=EntityType.RESTAURANT,
        city='Brooklyn',
        state='NY',
        rating='4.60',
    )


@pytest.fixture
def store_business(db):
    """Create and return a second business of another category."""
    return Business.objects.create(
        name='Shalom Market',
        entity_type=EntityType.STORE,
        city='Queens',
        state='NY',
    )


@pytest.fixture
def make_special(business):
    """Factory for specials valid around now."""
    def _make(**overrides):
        now = timezone.now()
        fields = {
            'business': business,
            'title': 'Free dessert with any entree',
            'description': 'One free dessert per table',
            'valid_from': now - timedelta(days=1),
            'valid_until': now + timedelta(days=30),
        }
        fields.update(overrides)
        return Special.objects.create(**fields)
    return _make


@pytest.fixture
def special(make_special):
    """Single-use special with capacity 3."""
    return make_special(max_claims_total=3)


@pytest.fixture
def single_special(make_special):
    """Special with exactly one unit of capacity."""
    return make_special(title='First customer lunch', max_claims_total=1)


@pytest.fixture
def unlimited_special(make_special):
    """Special without a capacity limit."""
    return make_special(title='10% off all week', max_claims_total=None, priority=5)


@pytest.fixture
def special_with_gallery(special):
    SpecialMedia.objects.create(special=special, url='https://cdn.example.com/b.jpg', position=1)
    SpecialMedia.objects.create(special=special, url='https://cdn.example.com/a.jpg', position=0)
    return special
