"""API tests for the specials endpoints."""

import uuid
from datetime import timedelta

import pytest
from django.conf import settings
from django.db import DatabaseError
from django.urls import reverse
from django.utils import timezone
from rest_framework import status

from apps.specials.models import ClaimStatus, SpecialClaim, SpecialEvent
from apps.specials.services import Claimant, claim_special


def claim_url(special):
    return reverse('specials:special-claim', kwargs={'special_id': special.id})


@pytest.mark.django_db
class TestSpecialList:
    """Test GET /api/specials/"""

    def test_list_is_public(self, api_client, special, unlimited_special):
        response = api_client.get(reverse('specials:special-list'))

        assert response.status_code == status.HTTP_200_OK
        assert response.data['count'] == 2
        titles = [item['title'] for item in response.data['results']]
        # Higher priority first
        assert titles == [unlimited_special.title, special.title]

    def test_item_shape(self, api_client, special):
        claim_special(special_id=special.id, claimant=Claimant.for_guest('g1'))

        response = api_client.get(reverse('specials:special-list'))
        item = response.data['results'][0]

        assert item['claims_count'] == 1
        assert item['claims_left'] == 2
        assert item['views_count'] == 0
        assert item['is_expiring'] is False
        assert item['business']['name'] == 'Kosher Corner Deli'
        assert item['business']['price_range'] == '$$$'

    def test_unbounded_claims_left_is_null(self, api_client, unlimited_special):
        response = api_client.get(reverse('specials:special-list'))
        assert response.data['results'][0]['claims_left'] is None

    def test_is_expiring(self, api_client, make_special):
        make_special(valid_until=timezone.now() + timedelta(days=2))

        response = api_client.get(reverse('specials:special-list'))
        assert response.data['results'][0]['is_expiring'] is True

    def test_sold_out_hidden(self, api_client, single_special):
        claim_special(special_id=single_special.id, claimant=Claimant.for_guest('g1'))

        response = api_client.get(reverse('specials:special-list'))
        assert response.data['count'] == 0

        response = api_client.get(reverse('specials:special-list'), {'active_only': 'false'})
        assert response.data['count'] == 1
        assert response.data['results'][0]['claims_left'] == 0

    def test_limit_offset_pagination(self, api_client, make_special):
        for n in range(5):
            make_special(title=f'Special {n}', priority=n)

        response = api_client.get(reverse('specials:special-list'), {'limit': 2, 'offset': 1})

        assert response.data['count'] == 5
        assert [item['priority'] for item in response.data['results']] == [3, 2]
        assert response.data['next'] is not None

    def test_sort_order(self, api_client, make_special):
        make_special(title='Low', priority=1)
        make_special(title='High', priority=9)

        response = api_client.get(
            reverse('specials:special-list'),
            {'sort_by': 'priority', 'sort_order': 'asc'}
        )
        assert [item['title'] for item in response.data['results']] == ['Low', 'High']

    def test_invalid_sort_rejected(self, api_client, special):
        response = api_client.get(reverse('specials:special-list'), {'sort_by': 'title; drop table'})

        assert response.status_code == status.HTTP_400_BAD_REQUEST
        assert response.data['kind'] == 'validation_error'
        assert 'sort_by' in response.data['details']


@pytest.mark.django_db
class TestSpecialSearch:
    """Test GET /api/specials/search/"""

    def test_search_text(self, api_client, special, store_business, make_special):
        make_special(business=store_business, title='Challah Friday', description='')

        response = api_client.get(reverse('specials:special-search'), {'q': 'challah'})

        assert response.status_code == status.HTTP_200_OK
        assert [item['title'] for item in response.data['results']] == ['Challah Friday']

    def test_search_category(self, api_client, special, store_business, make_special):
        make_special(business=store_business, title='Challah Friday')

        response = api_client.get(reverse('specials:special-search'), {'category': 'restaurant'})
        assert [item['id'] for item in response.data['results']] == [str(special.id)]

    def test_unknown_category_rejected(self, api_client, special):
        response = api_client.get(reverse('specials:special-search'), {'category': 'spaceport'})

        assert response.status_code == status.HTTP_400_BAD_REQUEST
        assert response.data['kind'] == 'validation_error'

    def test_search_by_business(self, api_client, special, store_business, make_special):
        make_special(business=store_business, title='Challah Friday')

        response = api_client.get(
            reverse('specials:special-search'),
            {'business_id': str(special.business_id)}
        )
        assert response.data['count'] == 1


@pytest.mark.django_db
class TestSpecialDetail:
    """Test GET /api/specials/<id>/"""

    def test_detail_with_gallery(self, api_client, special_with_gallery):
        url = reverse('specials:special-detail', kwargs={'special_id': special_with_gallery.id})

        response = api_client.get(url)

        assert response.status_code == status.HTTP_200_OK
        assert [m['position'] for m in response.data['gallery']] == [0, 1]
        assert response.data['claims_left'] == 3

    def test_detail_records_view(self, guest_client, special):
        url = reverse('specials:special-detail', kwargs={'special_id': special.id})

        guest_client.get(url, HTTP_USER_AGENT='pytest-browser')
        response = guest_client.get(url)

        events = SpecialEvent.objects.filter(special=special)
        assert events.count() == 2
        assert events.first().guest_session_id == 'guest-session-1'
        # Counted before this request's own view is stored
        assert response.data['views_count'] == 1

    def test_recorder_failure_keeps_response(self, api_client, special, monkeypatch):
        def broken_create(**kwargs):
            raise DatabaseError('events table unavailable')

        monkeypatch.setattr(SpecialEvent.objects, 'create', broken_create)
        url = reverse('specials:special-detail', kwargs={'special_id': special.id})

        response = api_client.get(url)

        assert response.status_code == status.HTTP_200_OK
        assert response.data['id'] == str(special.id)

    def test_detail_not_found(self, api_client, db):
        url = reverse('specials:special-detail', kwargs={'special_id': uuid.uuid4()})

        response = api_client.get(url)

        assert response.status_code == status.HTTP_404_NOT_FOUND
        assert response.data['kind'] == 'offer_not_found'

    def test_malformed_id_rejected(self, api_client, db):
        url = reverse('specials:special-detail', kwargs={'special_id': 'not-a-uuid'})

        response = api_client.get(url)

        assert response.status_code == status.HTTP_400_BAD_REQUEST
        assert response.data['kind'] == 'validation_error'
        assert not SpecialEvent.objects.exists()


@pytest.mark.django_db
class TestClaimSpecial:
    """Test POST /api/specials/<id>/claim/"""

    def test_guest_claim(self, guest_client, special):
        response = guest_client.post(claim_url(special), {}, format='json')

        assert response.status_code == status.HTTP_201_CREATED
        assert response.data['claim']['status'] == ClaimStatus.CLAIMED
        assert response.data['special'] == {
            'id': str(special.id),
            'title': special.title,
            'business_name': 'Kosher Corner Deli',
            'claims_left': 2,
        }
        claim = SpecialClaim.objects.get(id=response.data['claim']['id'])
        assert claim.guest_session_id == 'guest-session-1'

    def test_user_claim(self, auth_client, special, claim_user):
        response = auth_client.post(claim_url(special), {}, format='json')

        assert response.status_code == status.HTTP_201_CREATED
        assert SpecialClaim.objects.get(special=special).user_id == claim_user.id

    def test_unbounded_claims_left_is_null(self, guest_client, unlimited_special):
        response = guest_client.post(claim_url(unlimited_special), {}, format='json')
        assert response.data['special']['claims_left'] is None

    def test_anonymous_without_guest_session(self, api_client, special):
        response = api_client.post(claim_url(special), {}, format='json')

        assert response.status_code == status.HTTP_400_BAD_REQUEST
        assert response.data['kind'] == 'validation_error'
        assert not SpecialClaim.objects.exists()

    def test_duplicate_claim(self, auth_client, special):
        auth_client.post(claim_url(special), {}, format='json')
        response = auth_client.post(claim_url(special), {}, format='json')

        assert response.status_code == status.HTTP_409_CONFLICT
        assert response.data['kind'] == 'already_claimed'

    def test_sold_out(self, auth_client, guest_client, single_special):
        guest_client.post(claim_url(single_special), {}, format='json')
        response = auth_client.post(claim_url(single_special), {}, format='json')

        assert response.status_code == status.HTTP_409_CONFLICT
        assert response.data['kind'] == 'sold_out'

    def test_expired(self, guest_client, make_special):
        now = timezone.now()
        special = make_special(valid_from=now - timedelta(days=3), valid_until=now - timedelta(days=1))

        response = guest_client.post(claim_url(special), {}, format='json')

        assert response.status_code == status.HTTP_409_CONFLICT
        assert response.data['kind'] == 'offer_expired'

    def test_inactive(self, guest_client, make_special):
        special = make_special(is_active=False)

        response = guest_client.post(claim_url(special), {}, format='json')

        assert response.status_code == status.HTTP_409_CONFLICT
        assert response.data['kind'] == 'offer_inactive'

    def test_missing_special(self, guest_client, db):
        url = reverse('specials:special-claim', kwargs={'special_id': uuid.uuid4()})

        response = guest_client.post(url, {}, format='json')

        assert response.status_code == status.HTTP_404_NOT_FOUND
        assert response.data['kind'] == 'offer_not_found'

    def test_idempotent_replay(self, guest_client, special):
        first = guest_client.post(claim_url(special), {'idempotency_key': 'abc'}, format='json')
        second = guest_client.post(claim_url(special), {'idempotency_key': 'abc'}, format='json')

        assert first.status_code == status.HTTP_201_CREATED
        assert second.status_code == status.HTTP_200_OK
        assert second.data['claim']['id'] == first.data['claim']['id']
        assert SpecialClaim.objects.count() == 1

    def test_idempotency_conflict(self, guest_client, auth_client, special):
        guest_client.post(claim_url(special), {'idempotency_key': 'abc'}, format='json')
        response = auth_client.post(claim_url(special), {'idempotency_key': 'abc'}, format='json')

        assert response.status_code == status.HTTP_409_CONFLICT
        assert response.data['kind'] == 'idempotency_conflict'

    def test_transient_error(self, guest_client, special, monkeypatch):
        from apps.specials.services import claim_coordinator, LockTimeoutError

        def busy(*args, **kwargs):
            raise LockTimeoutError()

        monkeypatch.setattr(claim_coordinator, 'get_special_for_claim', busy)

        response = guest_client.post(claim_url(special), {}, format='json')

        assert response.status_code == status.HTTP_503_SERVICE_UNAVAILABLE
        assert response.data['kind'] == 'lock_timeout'


@pytest.mark.django_db
class TestClaimLifecycle:
    """Test cancel, redeem and listing own claims."""

    def test_cancel_own_claim(self, auth_client, special):
        claim_id = auth_client.post(claim_url(special), {}, format='json').data['claim']['id']
        url = reverse('specials:claim-cancel', kwargs={'claim_id': claim_id})

        response = auth_client.post(url)

        assert response.status_code == status.HTTP_200_OK
        assert response.data['status'] == ClaimStatus.CANCELLED

    def test_cancel_other_users_claim(self, auth_client, other_client, special):
        claim_id = auth_client.post(claim_url(special), {}, format='json').data['claim']['id']
        url = reverse('specials:claim-cancel', kwargs={'claim_id': claim_id})

        response = other_client.post(url)

        assert response.status_code == status.HTTP_404_NOT_FOUND
        assert response.data['kind'] == 'claim_not_found'

    def test_cancel_twice(self, guest_client, special):
        claim_id = guest_client.post(claim_url(special), {}, format='json').data['claim']['id']
        url = reverse('specials:claim-cancel', kwargs={'claim_id': claim_id})

        guest_client.post(url)
        response = guest_client.post(url)

        assert response.status_code == status.HTTP_409_CONFLICT
        assert response.data['kind'] == 'invalid_transition'

    def test_redeem_requires_staff(self, auth_client, special):
        claim_id = auth_client.post(claim_url(special), {}, format='json').data['claim']['id']
        url = reverse('specials:claim-redeem', kwargs={'claim_id': claim_id})

        response = auth_client.post(url)

        assert response.status_code == status.HTTP_403_FORBIDDEN

    def test_staff_redeem(self, guest_client, staff_client, special):
        claim_id = guest_client.post(claim_url(special), {}, format='json').data['claim']['id']
        url = reverse('specials:claim-redeem', kwargs={'claim_id': claim_id})

        response = staff_client.post(url)
        again = staff_client.post(url)

        assert response.status_code == status.HTTP_200_OK
        assert response.data['status'] == ClaimStatus.REDEEMED
        assert again.status_code == status.HTTP_409_CONFLICT

    def test_my_claims(self, guest_client, auth_client, special, unlimited_special):
        guest_client.post(claim_url(special), {}, format='json')
        guest_client.post(claim_url(unlimited_special), {}, format='json')
        auth_client.post(claim_url(special), {}, format='json')

        response = guest_client.get(reverse('specials:my-claims'))

        assert response.status_code == status.HTTP_200_OK
        assert len(response.data) == 2
        assert {item['special_id'] for item in response.data} == {
            str(special.id), str(unlimited_special.id)
        }

    def test_my_claims_requires_identity(self, api_client, db):
        response = api_client.get(reverse('specials:my-claims'))

        assert response.status_code == status.HTTP_400_BAD_REQUEST
        assert response.data['kind'] == 'validation_error'


@pytest.mark.django_db
class TestMalformedIds:
    """Ids that are not UUIDs are rejected before any lookup."""

    def test_claim(self, guest_client):
        url = reverse('specials:special-claim', kwargs={'special_id': 'not-a-uuid'})

        response = guest_client.post(url, {}, format='json')

        assert response.status_code == status.HTTP_400_BAD_REQUEST
        assert response.data['kind'] == 'validation_error'
        assert not SpecialClaim.objects.exists()

    def test_cancel(self, guest_client):
        url = reverse('specials:claim-cancel', kwargs={'claim_id': '12345'})

        response = guest_client.post(url)

        assert response.status_code == status.HTTP_400_BAD_REQUEST
        assert response.data['kind'] == 'validation_error'

    def test_redeem(self, staff_client):
        url = reverse('specials:claim-redeem', kwargs={'claim_id': 'abc-def'})

        response = staff_client.post(url)

        assert response.status_code == status.HTTP_400_BAD_REQUEST
        assert response.data['kind'] == 'validation_error'

    def test_well_formed_unknown_id_is_not_found(self, guest_client):
        url = reverse('specials:special-claim', kwargs={'special_id': str(uuid.uuid4())})

        response = guest_client.post(url, {}, format='json')

        assert response.status_code == status.HTTP_404_NOT_FOUND
        assert response.data['kind'] == 'offer_not_found'


@pytest.mark.django_db
class TestGuestSessionHeader:
    """Test the guest session header across the API."""

    LONG_SESSION = 'g' * 200

    def test_overlong_guest_session_rejected_on_claim(self, api_client, special):
        response = api_client.post(
            claim_url(special), {}, format='json', HTTP_X_GUEST_SESSION=self.LONG_SESSION
        )

        assert response.status_code == status.HTTP_400_BAD_REQUEST
        assert response.data['kind'] == 'validation_error'
        assert not SpecialClaim.objects.exists()

    def test_overlong_guest_session_rejected_on_my_claims(self, api_client, special):
        claim_special(special_id=special.id, claimant=Claimant.for_guest('g' * 128))

        response = api_client.get(
            reverse('specials:my-claims'), HTTP_X_GUEST_SESSION='g' * 129
        )

        assert response.status_code == status.HTTP_400_BAD_REQUEST
        assert response.data['kind'] == 'validation_error'

    def test_overlong_guest_session_views_anonymously(self, api_client, special):
        url = reverse('specials:special-detail', kwargs={'special_id': special.id})

        response = api_client.get(url, HTTP_X_GUEST_SESSION=self.LONG_SESSION)

        assert response.status_code == status.HTTP_200_OK
        event = SpecialEvent.objects.get(special=special)
        assert event.guest_session_id is None

    def test_header_allowed_by_cors(self):
        assert settings.SPECIALS_GUEST_SESSION_HEADER.lower() in settings.CORS_ALLOW_HEADERS
