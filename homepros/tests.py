import random
import tempfile
from datetime import timedelta
from decimal import Decimal
from io import BytesIO, StringIO

from django.contrib.auth.models import User
from django.core.files.uploadedfile import SimpleUploadedFile
from django.core.management import call_command
from django.db import transaction
from django.test import TestCase, override_settings
from django.utils import timezone
from PIL import Image
from rest_framework import status
from rest_framework.test import APITestCase

from .exceptions import api_exception_handler
from .models import (
    Booking,
    ContractorProfile,
    ContractorProject,
    ContractorService,
    InvalidTransition,
    JobRequest,
    Message,
    Profile,
    ProjectImage,
    Quote,
    Review,
    ServiceCategory,
    create_direct_booking,
    delete_conversation,
    group_conversations,
)


def make_customer(username: str, full_name: str = '') -> Profile:
    user = User.objects.create_user(username=username, password='pass', email=f'{username}@example.com')
    return Profile.objects.create(
        user=user, email=user.email, full_name=full_name or username.title(), user_type=Profile.TYPE_CUSTOMER
    )


def make_contractor(username: str, business_name: str, **extra) -> ContractorProfile:
    user = User.objects.create_user(username=username, password='pass', email=f'{username}@example.com')
    Profile.objects.create(
        user=user, email=user.email, full_name=business_name, phone='555-0100', user_type=Profile.TYPE_CONTRACTOR
    )
    extra.setdefault('status', ContractorProfile.STATUS_APPROVED)
    return ContractorProfile.objects.create(user=user, business_name=business_name, **extra)


class MarketplaceFixtureMixin:
    def setUp(self):
        self.plumbing = ServiceCategory.objects.create(name='Plumbing')
        self.customer = make_customer('homeowner', 'Hannah Homeowner')
        self.contractor_a = make_contractor('pipes', 'Pipe Pros', city='Austin', state='TX', hourly_rate=Decimal('80.00'))
        self.contractor_b = make_contractor('drips', 'Drip Fixers', city='Dallas', state='TX', hourly_rate=Decimal('60.00'))
        self.job = JobRequest.objects.create(
            customer=self.customer,
            category=self.plumbing,
            title='Leaky faucet',
            description='Kitchen faucet drips all night',
        )


class JobWorkflowTests(MarketplaceFixtureMixin, TestCase):
    def test_submit_quote_leaves_job_open(self):
        quote = Quote.submit(self.job, self.contractor_a, Decimal('150.00'), '2 hours', 'Can come tomorrow')
        self.job.refresh_from_db()
        self.assertEqual(quote.status, Quote.STATUS_PENDING)
        self.assertEqual(self.job.status, JobRequest.STATUS_OPEN)

    def test_resubmitting_revises_pending_quote(self):
        first = Quote.submit(self.job, self.contractor_a, Decimal('150.00'))
        second = Quote.submit(self.job, self.contractor_a, Decimal('140.00'), message='Revised')
        self.assertEqual(first.pk, second.pk)
        self.assertEqual(Quote.objects.filter(job_request=self.job).count(), 1)
        first.refresh_from_db()
        self.assertEqual(first.quoted_price, Decimal('140.00'))

    def test_accepted_quote_cannot_be_modified(self):
        quote = Quote.submit(self.job, self.contractor_a, Decimal('150.00'))
        self.job.accept_quote(quote)
        with self.assertRaises(InvalidTransition):
            Quote.submit(self.job, self.contractor_a, Decimal('90.00'))

    def test_accept_with_negotiated_price(self):
        quote = Quote.submit(self.job, self.contractor_a, Decimal('150.00'))
        self.job.accept_quote(quote, Decimal('120.00'))
        quote.refresh_from_db()
        self.job.refresh_from_db()
        self.assertEqual(quote.status, Quote.STATUS_ACCEPTED)
        self.assertEqual(quote.quoted_price, Decimal('120.00'))
        self.assertEqual(self.job.status, JobRequest.STATUS_ASSIGNED)
        self.assertFalse(Booking.objects.exists())

    def test_accept_rejects_other_pending_quotes_only(self):
        contractor_c = make_contractor('leaks', 'Leak Busters')
        quote_a = Quote.submit(self.job, self.contractor_a, Decimal('150.00'))
        quote_b = Quote.submit(self.job, self.contractor_b, Decimal('130.00'))
        quote_c = Quote.submit(self.job, contractor_c, Decimal('170.00'))
        quote_c.withdraw()

        self.job.accept_quote(quote_a)

        quote_b.refresh_from_db()
        quote_c.refresh_from_db()
        self.assertEqual(quote_b.status, Quote.STATUS_REJECTED)
        self.assertEqual(quote_c.status, Quote.STATUS_WITHDRAWN)
        self.assertEqual(self.job.quotes.filter(status=Quote.STATUS_ACCEPTED).count(), 1)

    def test_second_acceptance_is_refused(self):
        quote_a = Quote.submit(self.job, self.contractor_a, Decimal('150.00'))
        quote_b = Quote.submit(self.job, self.contractor_b, Decimal('130.00'))
        self.job.accept_quote(quote_a)
        with self.assertRaises(InvalidTransition):
            self.job.accept_quote(quote_b)
        quote_b.refresh_from_db()
        self.assertEqual(quote_b.status, Quote.STATUS_REJECTED)

    def test_accept_checks_current_quote_status(self):
        quote = Quote.submit(self.job, self.contractor_a, Decimal('150.00'))
        Quote.objects.filter(pk=quote.pk).update(status=Quote.STATUS_WITHDRAWN)
        with self.assertRaises(InvalidTransition):
            self.job.accept_quote(quote)
        self.job.refresh_from_db()
        self.assertEqual(Quote.objects.get(pk=quote.pk).status, Quote.STATUS_WITHDRAWN)
        self.assertEqual(self.job.status, JobRequest.STATUS_OPEN)

    def test_assigned_job_no_longer_accepts_quotes(self):
        quote = Quote.submit(self.job, self.contractor_a, Decimal('150.00'))
        self.job.accept_quote(quote)
        with self.assertRaises(InvalidTransition):
            Quote.submit(self.job, self.contractor_b, Decimal('100.00'))

    def test_status_transitions(self):
        quote = Quote.submit(self.job, self.contractor_a, Decimal('150.00'))
        self.job.accept_quote(quote)
        self.job.change_status(JobRequest.STATUS_IN_PROGRESS)
        with self.assertRaises(InvalidTransition):
            self.job.change_status(JobRequest.STATUS_ASSIGNED)
        self.job.change_status(JobRequest.STATUS_COMPLETED)
        self.assertEqual(self.job.status, JobRequest.STATUS_COMPLETED)
        with self.assertRaises(InvalidTransition):
            self.job.change_status(JobRequest.STATUS_CANCELLED)

    def test_status_cannot_skip_ahead(self):
        with self.assertRaises(InvalidTransition):
            self.job.change_status(JobRequest.STATUS_COMPLETED)
        self.job.refresh_from_db()
        self.assertEqual(self.job.status, JobRequest.STATUS_OPEN)

    def test_cancel_only_from_open(self):
        self.job.cancel()
        self.job.refresh_from_db()
        self.assertEqual(self.job.status, JobRequest.STATUS_CANCELLED)

        other = JobRequest.objects.create(customer=self.customer, category=self.plumbing, title='Clogged drain')
        quote = Quote.submit(other, self.contractor_a, Decimal('90.00'))
        other.accept_quote(quote)
        with self.assertRaises(InvalidTransition):
            other.cancel()
        other.refresh_from_db()
        self.assertEqual(other.status, JobRequest.STATUS_ASSIGNED)

    def test_direct_booking_creates_job_quote_and_booking(self):
        when = timezone.now() + timedelta(days=2)
        booking = create_direct_booking(self.customer, self.contractor_a, when, 'Install a new sink')
        self.assertEqual(booking.status, Booking.STATUS_SCHEDULED)
        self.assertEqual(booking.job_request.title, 'Booking Request')
        self.assertEqual(booking.job_request.status, JobRequest.STATUS_OPEN)
        self.assertEqual(booking.job_request.category.name, ServiceCategory.GENERAL)
        self.assertEqual(booking.quote.quoted_price, Decimal('0.00'))
        self.assertEqual(booking.quote.status, Quote.STATUS_PENDING)
        self.assertEqual(booking.notes, 'Install a new sink')

    def test_completing_booking_counts_job(self):
        booking = create_direct_booking(self.customer, self.contractor_a, timezone.now(), category=self.plumbing)
        booking.change_status(Booking.STATUS_IN_PROGRESS)
        booking.change_status(Booking.STATUS_COMPLETED)
        self.contractor_a.refresh_from_db()
        self.assertIsNotNone(booking.completion_date)
        self.assertEqual(self.contractor_a.total_jobs, 1)
        with self.assertRaises(InvalidTransition):
            booking.change_status(Booking.STATUS_CANCELLED)


class ReviewAggregationTests(MarketplaceFixtureMixin, TestCase):
    def test_average_follows_every_review(self):
        for rating in (5, 4, 4):
            Review.objects.create(contractor=self.contractor_a, customer=self.customer, rating=rating)
        self.contractor_a.refresh_from_db()
        self.assertEqual(self.contractor_a.total_reviews, 3)
        self.assertEqual(self.contractor_a.avg_rating, Decimal('4.33'))

    def test_recalc_without_reviews_resets_aggregates(self):
        ContractorProfile.objects.filter(pk=self.contractor_b.pk).update(avg_rating=Decimal('3.00'), total_reviews=7)
        self.contractor_b.refresh_from_db()
        self.contractor_b.recalc_ratings()
        self.assertEqual(self.contractor_b.avg_rating, Decimal('0.00'))
        self.assertEqual(self.contractor_b.total_reviews, 0)

    def test_recalc_command(self):
        Review.objects.create(contractor=self.contractor_a, customer=self.customer, rating=2)
        ContractorProfile.objects.filter(pk=self.contractor_a.pk).update(avg_rating=Decimal('0.00'), total_reviews=0)
        call_command('recalc_contractor_ratings', stdout=StringIO())
        self.contractor_a.refresh_from_db()
        self.assertEqual(self.contractor_a.avg_rating, Decimal('2.00'))
        self.assertEqual(self.contractor_a.total_reviews, 1)

    def test_editing_rating_updates_average(self):
        review = Review.objects.create(contractor=self.contractor_a, customer=self.customer, rating=5)
        Review.objects.create(contractor=self.contractor_a, customer=make_customer('second'), rating=3)
        review.rating = 1
        review.save()
        self.contractor_a.refresh_from_db()
        self.assertEqual(self.contractor_a.avg_rating, Decimal('2.00'))
        self.assertEqual(self.contractor_a.total_reviews, 2)

    def test_deleting_review_updates_average(self):
        review = Review.objects.create(contractor=self.contractor_a, customer=self.customer, rating=5)
        Review.objects.create(contractor=self.contractor_a, customer=make_customer('second'), rating=3)
        review.delete()
        self.contractor_a.refresh_from_db()
        self.assertEqual(self.contractor_a.avg_rating, Decimal('3.00'))
        self.assertEqual(self.contractor_a.total_reviews, 1)

    def test_booking_cascade_updates_average(self):
        booking = create_direct_booking(self.customer, self.contractor_a, timezone.now())
        Review.objects.create(booking=booking, contractor=self.contractor_a, customer=self.customer, rating=4)
        booking.delete()
        self.contractor_a.refresh_from_db()
        self.assertFalse(Review.objects.exists())
        self.assertEqual(self.contractor_a.avg_rating, Decimal('0.00'))
        self.assertEqual(self.contractor_a.total_reviews, 0)


class ConversationGroupingTests(MarketplaceFixtureMixin, TestCase):
    def setUp(self):
        super().setUp()
        self.contractor_profile = self.contractor_a.user.profile
        self.other_job = JobRequest.objects.create(customer=self.customer, category=self.plumbing, title='Water heater')
        base = timezone.now() - timedelta(hours=1)
        rows = [
            (self.job, self.customer, self.contractor_profile, 'Is tomorrow ok?', True),
            (self.job, self.contractor_profile, self.customer, 'Yes, 9am', False),
            (self.job, self.contractor_profile, self.customer, 'Bring parts?', False),
            (self.other_job, self.customer, self.contractor_profile, 'Also the heater', False),
            (None, self.contractor_profile, self.customer, 'Orphaned note', False),
        ]
        for offset, (job, sender, receiver, text, is_read) in enumerate(rows):
            msg = Message.objects.create(job_request=job, sender=sender, receiver=receiver, message=text, is_read=is_read)
            Message.objects.filter(pk=msg.pk).update(created_at=base + timedelta(minutes=offset))

    def _messages(self):
        return list(Message.objects.select_related('sender', 'receiver', 'job_request'))

    def test_groups_by_job_and_other_party(self):
        conversations = group_conversations(self._messages(), self.customer.id)
        self.assertEqual(len(conversations), 2)
        latest, earlier = conversations
        self.assertEqual(latest['job_request_id'], self.other_job.id)
        self.assertEqual(latest['last_message'], 'Also the heater')
        self.assertEqual(latest['unread_count'], 0)
        self.assertEqual(earlier['job_request_id'], self.job.id)
        self.assertEqual(earlier['last_message'], 'Bring parts?')
        self.assertEqual(earlier['unread_count'], 2)
        self.assertEqual(earlier['other_party_id'], self.contractor_profile.id)

    def test_grouping_ignores_input_order(self):
        messages = self._messages()
        expected = group_conversations(messages, self.contractor_profile.id)
        shuffled = list(messages)
        random.Random(7).shuffle(shuffled)
        self.assertEqual(group_conversations(shuffled, self.contractor_profile.id), expected)
        self.assertEqual(group_conversations(list(reversed(messages)), self.contractor_profile.id), expected)

    def test_delete_conversation_removes_both_directions(self):
        deleted = delete_conversation(self.job.id, self.customer.id, self.contractor_profile.id)
        self.assertEqual(deleted, 3)
        self.assertFalse(Message.objects.filter(job_request=self.job).exists())
        self.assertTrue(Message.objects.filter(job_request=self.other_job).exists())


class JobApiTests(MarketplaceFixtureMixin, APITestCase):
    def test_quote_and_accept_through_api(self):
        self.client.force_authenticate(user=self.contractor_a.user)
        response = self.client.post(
            '/api/quotes/', {'job_request_id': str(self.job.id), 'quoted_price': '150.00'}, format='json'
        )
        self.assertEqual(response.status_code, status.HTTP_201_CREATED)
        quote_id = response.data['id']

        self.client.force_authenticate(user=self.customer.user)
        response = self.client.post(
            f'/api/job-requests/{self.job.id}/accept-quote/',
            {'quote_id': quote_id, 'final_price': '120.00'},
            format='json',
        )
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        quote = Quote.objects.get(pk=quote_id)
        self.job.refresh_from_db()
        self.assertEqual(quote.status, Quote.STATUS_ACCEPTED)
        self.assertEqual(quote.quoted_price, Decimal('120.00'))
        self.assertEqual(self.job.status, JobRequest.STATUS_ASSIGNED)

    def test_quote_requires_positive_price(self):
        self.client.force_authenticate(user=self.contractor_a.user)
        response = self.client.post(
            '/api/quotes/', {'job_request_id': str(self.job.id), 'quoted_price': '0'}, format='json'
        )
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)

    def test_customer_cannot_submit_quote(self):
        self.client.force_authenticate(user=self.customer.user)
        response = self.client.post(
            '/api/quotes/', {'job_request_id': str(self.job.id), 'quoted_price': '10.00'}, format='json'
        )
        self.assertEqual(response.status_code, status.HTTP_403_FORBIDDEN)

    def test_create_job_as_customer(self):
        self.client.force_authenticate(user=self.customer.user)
        response = self.client.post(
            '/api/job-requests/',
            {
                'category': str(self.plumbing.id),
                'title': 'Running toilet',
                'description': 'Never stops',
                'urgency': 'high',
                'budget_min': '50.00',
                'budget_max': '150.00',
            },
            format='json',
        )
        self.assertEqual(response.status_code, status.HTTP_201_CREATED)
        self.assertEqual(response.data['status'], JobRequest.STATUS_OPEN)

    def test_budget_range_validated(self):
        self.client.force_authenticate(user=self.customer.user)
        response = self.client.post(
            '/api/job-requests/',
            {'category': str(self.plumbing.id), 'title': 'Odd budget', 'budget_min': '500', 'budget_max': '100'},
            format='json',
        )
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)

    def test_cancel_assigned_job_is_rejected(self):
        quote = Quote.submit(self.job, self.contractor_a, Decimal('150.00'))
        self.job.accept_quote(quote)
        self.client.force_authenticate(user=self.customer.user)
        response = self.client.post(f'/api/job-requests/{self.job.id}/cancel/')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.job.refresh_from_db()
        self.assertEqual(self.job.status, JobRequest.STATUS_ASSIGNED)

    def test_cancel_open_job(self):
        self.client.force_authenticate(user=self.customer.user)
        response = self.client.post(f'/api/job-requests/{self.job.id}/cancel/')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data['status'], JobRequest.STATUS_CANCELLED)

    def test_forged_completion_is_rejected(self):
        self.client.force_authenticate(user=self.customer.user)
        response = self.client.post(f'/api/job-requests/{self.job.id}/complete/')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.job.refresh_from_db()
        self.assertEqual(self.job.status, JobRequest.STATUS_OPEN)

    def test_other_customer_cannot_touch_job(self):
        stranger = make_customer('stranger')
        self.client.force_authenticate(user=stranger.user)
        response = self.client.post(f'/api/job-requests/{self.job.id}/cancel/')
        self.assertEqual(response.status_code, status.HTTP_404_NOT_FOUND)

    def test_available_jobs_exclude_quoted(self):
        ContractorService.objects.create(contractor=self.contractor_a, category=self.plumbing)
        second = JobRequest.objects.create(customer=self.customer, category=self.plumbing, title='Burst pipe')
        third = JobRequest.objects.create(customer=self.customer, category=self.plumbing, title='New shower')
        Quote.submit(self.job, self.contractor_a, Decimal('150.00'))

        self.client.force_authenticate(user=self.contractor_a.user)
        response = self.client.get('/api/jobs/')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual({row['id'] for row in response.data}, {str(second.id), str(third.id)})

        response = self.client.get(
            '/api/jobs/', {'categoryIds': str(self.plumbing.id), 'quotedJobIds': str(second.id)}
        )
        self.assertEqual([row['id'] for row in response.data], [str(third.id)])

    def test_available_jobs_rejects_bad_ids(self):
        self.client.force_authenticate(user=self.contractor_a.user)
        response = self.client.get('/api/jobs/', {'categoryIds': 'not-a-uuid'})
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)


class BookingApiTests(MarketplaceFixtureMixin, APITestCase):
    def test_list_requires_customer_id(self):
        self.client.force_authenticate(user=self.customer.user)
        response = self.client.get('/api/bookings/')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)

    def test_list_other_customers_bookings_forbidden(self):
        stranger = make_customer('stranger')
        self.client.force_authenticate(user=stranger.user)
        response = self.client.get('/api/bookings/', {'customerId': str(self.customer.id)})
        self.assertEqual(response.status_code, status.HTTP_403_FORBIDDEN)

    def test_create_and_list_bookings(self):
        self.client.force_authenticate(user=self.customer.user)
        response = self.client.post(
            '/api/bookings/',
            {
                'contractor_id': str(self.contractor_a.id),
                'customer_id': str(self.customer.id),
                'date': '2030-05-01',
                'time': '09:30',
                'description': 'Replace faucet',
                'category_id': str(self.plumbing.id),
            },
            format='json',
        )
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data['status'], Booking.STATUS_SCHEDULED)
        self.assertEqual(JobRequest.objects.filter(title='Booking Request').count(), 1)

        response = self.client.get('/api/bookings/', {'customerId': str(self.customer.id)})
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(len(response.data), 1)
        row = response.data[0]
        self.assertEqual(row['contractorName'], 'Pipe Pros')
        self.assertEqual(row['date'], '2030-05-01')
        self.assertEqual(row['time'], '09:30')
        self.assertEqual(row['specialty'], 'General')
        self.assertIsNone(row['estimatedCost'])

    def test_malformed_customer_id(self):
        staff = make_customer('support')
        staff.user.is_staff = True
        staff.user.save()
        self.client.force_authenticate(user=staff.user)
        response = self.client.get('/api/bookings/', {'customerId': 'abc'})
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertIn('customerId', response.data)

    def test_cannot_book_for_someone_else(self):
        stranger = make_customer('stranger')
        self.client.force_authenticate(user=stranger.user)
        response = self.client.post(
            '/api/bookings/',
            {
                'contractor_id': str(self.contractor_a.id),
                'customer_id': str(self.customer.id),
                'date': '2030-05-01',
                'time': '09:30',
            },
            format='json',
        )
        self.assertEqual(response.status_code, status.HTTP_403_FORBIDDEN)
        self.assertFalse(Booking.objects.exists())

    def test_contractor_completes_booking(self):
        booking = create_direct_booking(self.customer, self.contractor_a, timezone.now())
        self.client.force_authenticate(user=self.customer.user)
        response = self.client.post(f'/api/bookings/{booking.id}/start/')
        self.assertEqual(response.status_code, status.HTTP_403_FORBIDDEN)

        self.client.force_authenticate(user=self.contractor_a.user)
        self.assertEqual(self.client.post(f'/api/bookings/{booking.id}/start/').status_code, status.HTTP_200_OK)
        response = self.client.post(f'/api/bookings/{booking.id}/complete/')
        self.assertEqual(response.data['status'], Booking.STATUS_COMPLETED)

        response = self.client.get('/api/contractor/stats/')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data['completed_bookings'], 1)
        self.assertEqual(response.data['success_rate'], '100.00')


class ReviewApiTests(MarketplaceFixtureMixin, APITestCase):
    def setUp(self):
        super().setUp()
        self.booking = create_direct_booking(self.customer, self.contractor_a, timezone.now())
        Review.objects.create(contractor=self.contractor_a, customer=make_customer('earlier'), rating=3)

    def _submit(self, **overrides):
        payload = {
            'booking_id': str(self.booking.id),
            'contractor_id': str(self.contractor_a.id),
            'rating': 5,
            'title': '  Great work ',
            'comment': 'Fixed it fast',
        }
        payload.update(overrides)
        return self.client.post('/api/reviews/', payload, format='json')

    def test_review_updates_aggregate_and_blocks_duplicates(self):
        self.client.force_authenticate(user=self.customer.user)
        response = self._submit()
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data['title'], 'Great work')
        self.contractor_a.refresh_from_db()
        self.assertEqual(self.contractor_a.total_reviews, 2)
        self.assertEqual(self.contractor_a.avg_rating, Decimal('4.00'))

        response = self._submit(rating=1)
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.contractor_a.refresh_from_db()
        self.assertEqual(self.contractor_a.total_reviews, 2)
        self.assertEqual(Review.objects.filter(booking=self.booking).count(), 1)

    def test_rating_out_of_range(self):
        self.client.force_authenticate(user=self.customer.user)
        response = self._submit(rating=6)
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertFalse(Review.objects.filter(booking=self.booking).exists())

    def test_booking_must_belong_to_caller(self):
        stranger = make_customer('stranger')
        self.client.force_authenticate(user=stranger.user)
        response = self._submit()
        self.assertEqual(response.status_code, status.HTTP_403_FORBIDDEN)

    def test_unknown_booking(self):
        self.client.force_authenticate(user=self.customer.user)
        response = self._submit(booking_id='00000000-0000-0000-0000-000000000001')
        self.assertEqual(response.status_code, status.HTTP_404_NOT_FOUND)

    def test_caller_without_profile(self):
        user = User.objects.create_user(username='ghost', password='pass')
        self.client.force_authenticate(user=user)
        response = self._submit(booking_id=None)
        self.assertEqual(response.status_code, status.HTTP_404_NOT_FOUND)

    def test_review_without_booking(self):
        self.client.force_authenticate(user=self.customer.user)
        response = self._submit(booking_id=None, rating=4)
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertIsNone(response.data['booking'])

    def test_contractor_reviews_listing_and_response(self):
        self.client.force_authenticate(user=self.customer.user)
        review_id = self._submit().data['id']

        self.client.force_authenticate(user=None)
        response = self.client.get(f'/api/contractors/{self.contractor_a.id}/reviews/')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(len(response.data), 2)
        self.assertEqual(response.data[0]['customerName'], 'Hannah Homeowner')

        self.client.force_authenticate(user=self.contractor_a.user)
        response = self.client.post(f'/api/reviews/{review_id}/respond/', {'response': 'Thanks!'}, format='json')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        response = self.client.post(f'/api/reviews/{review_id}/respond/', {'response': 'Again'}, format='json')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)


class MessageApiTests(MarketplaceFixtureMixin, APITestCase):
    def setUp(self):
        super().setUp()
        self.contractor_profile = self.contractor_a.user.profile

    def _send(self, text):
        return self.client.post(
            '/api/messages/',
            {'job_request': str(self.job.id), 'receiver': str(self.contractor_profile.id), 'message': text},
            format='json',
        )

    def test_send_trims_and_rejects_blank(self):
        self.client.force_authenticate(user=self.customer.user)
        response = self._send('  When can you come?  ')
        self.assertEqual(response.status_code, status.HTTP_201_CREATED)
        self.assertEqual(response.data['message'], 'When can you come?')
        self.assertFalse(response.data['is_read'])
        self.assertEqual(self._send('   ').status_code, status.HTTP_400_BAD_REQUEST)

    def test_only_sender_can_edit_or_delete(self):
        self.client.force_authenticate(user=self.customer.user)
        message_id = self._send('Original').data['id']

        self.client.force_authenticate(user=self.contractor_a.user)
        response = self.client.patch(f'/api/messages/{message_id}/', {'message': 'Tampered'}, format='json')
        self.assertEqual(response.status_code, status.HTTP_403_FORBIDDEN)
        response = self.client.delete(f'/api/messages/{message_id}/')
        self.assertEqual(response.status_code, status.HTTP_403_FORBIDDEN)
        self.assertEqual(Message.objects.get(pk=message_id).message, 'Original')

        self.client.force_authenticate(user=self.customer.user)
        response = self.client.patch(f'/api/messages/{message_id}/', {'message': 'Edited'}, format='json')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(self.client.delete(f'/api/messages/{message_id}/').status_code, status.HTTP_204_NO_CONTENT)
        self.assertFalse(Message.objects.filter(pk=message_id).exists())

    def test_conversation_endpoints(self):
        self.client.force_authenticate(user=self.customer.user)
        self._send('First')
        self._send('Second')

        self.client.force_authenticate(user=self.contractor_a.user)
        response = self.client.get('/api/messages/conversations/')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(len(response.data), 1)
        self.assertEqual(response.data[0]['unread_count'], 2)
        self.assertEqual(response.data[0]['other_party_name'], 'Hannah Homeowner')

        key = {'job_request_id': str(self.job.id), 'other_party_id': str(self.customer.id)}
        self.assertEqual(self.client.post('/api/messages/mark-read/', key, format='json').data['updated'], 2)
        self.assertEqual(self.client.get('/api/messages/conversations/').data[0]['unread_count'], 0)

        response = self.client.post('/api/messages/delete-conversation/', key, format='json')
        self.assertEqual(response.data['deleted'], 2)
        self.assertEqual(self.client.get('/api/messages/conversations/').data, [])


class ContractorApiTests(MarketplaceFixtureMixin, APITestCase):
    def test_directory_lists_approved_contractors(self):
        make_contractor('newbie', 'Pending Plumbing', status=ContractorProfile.STATUS_PENDING)
        ContractorService.objects.create(contractor=self.contractor_a, category=self.plumbing)

        response = self.client.get('/api/contractors/')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual({row['name'] for row in response.data}, {'Pipe Pros', 'Drip Fixers'})

        response = self.client.get('/api/contractors/', {'specialty': 'Plumbing'})
        self.assertEqual([row['name'] for row in response.data], ['Pipe Pros'])
        self.assertEqual(response.data[0]['location'], 'Austin, TX')
        self.assertEqual(response.data[0]['hourlyRate'], 80.0)

        response = self.client.get('/api/contractors/', {'maxRate': '70'})
        self.assertEqual([row['name'] for row in response.data], ['Drip Fixers'])

        response = self.client.get('/api/contractors/', {'search': 'pipe'})
        self.assertEqual([row['name'] for row in response.data], ['Pipe Pros'])

    def test_detail_and_missing_contractor(self):
        response = self.client.get(f'/api/contractors/{self.contractor_a.id}/')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data['availability'], 'Contact for availability')
        self.assertEqual(response.data['email'], 'pipes@example.com')
        response = self.client.get('/api/contractors/00000000-0000-0000-0000-000000000009/')
        self.assertEqual(response.status_code, status.HTTP_404_NOT_FOUND)

    def test_specialties(self):
        ServiceCategory.objects.create(name='Electrical')
        response = self.client.get('/api/contractors/specialties/')
        self.assertEqual([row['name'] for row in response.data], ['Electrical', 'Plumbing'])

    def test_onboarding_sets_user_type_once(self):
        user = User.objects.create_user(username='fresh', password='pass', email='fresh@example.com')
        self.client.force_authenticate(user=user)
        response = self.client.post('/api/onboarding/', {'user_type': 'contractor', 'full_name': 'Fresh Start'}, format='json')
        self.assertEqual(response.status_code, status.HTTP_201_CREATED)
        self.assertEqual(response.data['user_type'], Profile.TYPE_CONTRACTOR)

        response = self.client.post('/api/onboarding/', {'user_type': 'customer'}, format='json')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)

        response = self.client.post('/api/contractor/setup/', {'business_name': 'Fresh Builds', 'city': 'Austin'}, format='json')
        self.assertEqual(response.status_code, status.HTTP_201_CREATED)
        self.assertEqual(response.data['status'], ContractorProfile.STATUS_PENDING)
        response = self.client.post('/api/contractor/setup/', {'business_name': 'Again'}, format='json')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)

    def test_add_services_skips_existing(self):
        electrical = ServiceCategory.objects.create(name='Electrical')
        ContractorService.objects.create(contractor=self.contractor_a, category=self.plumbing)
        self.client.force_authenticate(user=self.contractor_a.user)
        response = self.client.post(
            '/api/contractor/services/',
            {
                'services': [
                    {'category_id': str(self.plumbing.id)},
                    {'category_id': str(electrical.id), 'price_range_min': '50.00', 'price_range_max': '500.00'},
                ]
            },
            format='json',
        )
        self.assertEqual(response.status_code, status.HTTP_201_CREATED)
        self.assertEqual(len(response.data), 1)
        self.assertEqual(self.contractor_a.services.count(), 2)

        response = self.client.post('/api/contractor/services/', {'services': []}, format='json')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)


class ProjectImageTests(MarketplaceFixtureMixin, APITestCase):
    def setUp(self):
        super().setUp()
        media = tempfile.TemporaryDirectory()
        self.addCleanup(media.cleanup)
        settings_override = override_settings(MEDIA_ROOT=media.name)
        settings_override.enable()
        self.addCleanup(settings_override.disable)
        self.project = ContractorProject.objects.create(contractor=self.contractor_a, title='Bathroom remodel')

    def _png(self):
        buffer = BytesIO()
        Image.new('RGB', (4, 4), color='blue').save(buffer, format='PNG')
        return SimpleUploadedFile('after.PNG', buffer.getvalue(), content_type='image/png')

    def test_upload_path_and_delete(self):
        self.client.force_authenticate(user=self.contractor_a.user)
        response = self.client.post(
            f'/api/contractor/projects/{self.project.id}/images/', {'image': self._png()}, format='multipart'
        )
        self.assertEqual(response.status_code, status.HTTP_201_CREATED)
        image = ProjectImage.objects.get(project=self.project)
        self.assertTrue(image.image.name.startswith(f'project-images/{self.contractor_a.id}/'))
        self.assertTrue(image.image.name.endswith('.png'))
        storage, name = image.image.storage, image.image.name
        self.assertTrue(storage.exists(name))

        with self.captureOnCommitCallbacks(execute=True):
            response = self.client.delete(f'/api/contractor/projects/{self.project.id}/images/{image.id}/')
        self.assertEqual(response.status_code, status.HTTP_204_NO_CONTENT)
        self.assertFalse(ProjectImage.objects.exists())
        self.assertFalse(storage.exists(name))

    def test_other_contractor_cannot_upload(self):
        self.client.force_authenticate(user=self.contractor_b.user)
        response = self.client.post(
            f'/api/contractor/projects/{self.project.id}/images/', {'image': self._png()}, format='multipart'
        )
        self.assertEqual(response.status_code, status.HTTP_404_NOT_FOUND)

    def test_file_survives_rolled_back_delete(self):
        image = ProjectImage.objects.create(project=self.project, image=self._png())
        storage, name = image.image.storage, image.image.name
        with self.captureOnCommitCallbacks(execute=True):
            with self.assertRaises(RuntimeError):
                with transaction.atomic():
                    image.delete()
                    raise RuntimeError('abort')
        self.assertTrue(ProjectImage.objects.filter(pk=image.pk).exists())
        self.assertTrue(storage.exists(name))


class ExceptionHandlerTests(TestCase):
    def test_workflow_errors_become_bad_requests(self):
        response = api_exception_handler(InvalidTransition('Only open jobs can be cancelled'), {})
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertEqual(response.data, {'detail': 'Only open jobs can be cancelled'})

    def test_other_value_errors_are_server_errors(self):
        with self.assertLogs('homepros.exceptions', level='ERROR'):
            response = api_exception_handler(ValueError('internal detail'), {})
        self.assertEqual(response.status_code, status.HTTP_500_INTERNAL_SERVER_ERROR)
        self.assertEqual(response.data, {'detail': 'Internal server error'})
