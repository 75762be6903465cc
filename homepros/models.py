"""Domain models for the home services marketplace."""
from __future__ import annotations

import logging
import os
import secrets
import uuid
from datetime import datetime, timedelta
from decimal import Decimal
from typing import Iterable, Optional

from django.conf import settings
from django.core.validators import MinValueValidator, MaxValueValidator
from django.db import models, transaction
from django.db.models import Avg, Count, F, Q, Sum
from django.db.models.signals import post_delete
from django.dispatch import receiver
from django.utils import timezone

logger = logging.getLogger(__name__)


class InvalidTransition(ValueError):
    """A workflow rule forbids the requested change."""


class BaseModel(models.Model):
    """Base model that uses UUID primary keys for consistency."""

    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)

    class Meta:
        abstract = True


class TimestampedModel(BaseModel):
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        abstract = True


class Profile(TimestampedModel):
    TYPE_CUSTOMER = 'customer'
    TYPE_CONTRACTOR = 'contractor'
    TYPE_ADMIN = 'admin'
    USER_TYPE_CHOICES = [
        (TYPE_CUSTOMER, 'Customer'),
        (TYPE_CONTRACTOR, 'Contractor'),
        (TYPE_ADMIN, 'Admin'),
    ]

    user = models.OneToOneField(settings.AUTH_USER_MODEL, on_delete=models.CASCADE)
    email = models.EmailField(blank=True)
    full_name = models.CharField(max_length=255, blank=True)
    phone = models.CharField(max_length=30, blank=True)
    avatar_url = models.URLField(blank=True)
    user_type = models.CharField(max_length=20, choices=USER_TYPE_CHOICES, blank=True)

    def __str__(self) -> str:  # pragma: no cover - trivial
        return f"Profile({self.full_name or self.email})"

    @property
    def is_customer(self) -> bool:
        return self.user_type == self.TYPE_CUSTOMER

    @property
    def is_contractor(self) -> bool:
        return self.user_type == self.TYPE_CONTRACTOR

    def assign_user_type(self, user_type: str) -> None:
        """Set the account type once; it cannot be switched afterwards."""
        if self.user_type and self.user_type != user_type:
            raise InvalidTransition(f"User type is already set to {self.user_type}")
        self.user_type = user_type


class ServiceCategory(BaseModel):
    GENERAL = 'General'

    name = models.CharField(max_length=100, unique=True)
    description = models.TextField(blank=True)
    icon_url = models.URLField(blank=True)

    class Meta:
        ordering = ['name']
        verbose_name_plural = 'service categories'

    def __str__(self) -> str:  # pragma: no cover
        return self.name


class ContractorProfile(TimestampedModel):
    STATUS_PENDING = 'pending'
    STATUS_APPROVED = 'approved'
    STATUS_SUSPENDED = 'suspended'
    STATUS_REJECTED = 'rejected'
    STATUS_CHOICES = [
        (STATUS_PENDING, 'Pending'),
        (STATUS_APPROVED, 'Approved'),
        (STATUS_SUSPENDED, 'Suspended'),
        (STATUS_REJECTED, 'Rejected'),
    ]

    user = models.OneToOneField(settings.AUTH_USER_MODEL, on_delete=models.CASCADE)
    business_name = models.CharField(max_length=255)
    bio = models.TextField(blank=True)
    years_experience = models.PositiveIntegerField(null=True, blank=True)
    license_number = models.CharField(max_length=100, blank=True)
    insurance_verified = models.BooleanField(default=False)
    address = models.CharField(max_length=255, blank=True)
    city = models.CharField(max_length=100, blank=True, db_index=True)
    state = models.CharField(max_length=100, blank=True)
    zip_code = models.CharField(max_length=20, blank=True)
    hourly_rate = models.DecimalField(max_digits=10, decimal_places=2, null=True, blank=True)
    min_project_size = models.DecimalField(max_digits=10, decimal_places=2, null=True, blank=True)
    status = models.CharField(max_length=20, choices=STATUS_CHOICES, default=STATUS_PENDING, db_index=True)
    avg_rating = models.DecimalField(max_digits=3, decimal_places=2, default=Decimal('0.00'))
    total_reviews = models.PositiveIntegerField(default=0)
    total_jobs = models.PositiveIntegerField(default=0)

    def __str__(self) -> str:  # pragma: no cover - trivial
        return f"ContractorProfile({self.business_name})"

    @property
    def specialty(self) -> str:
        """Name of the first declared service category."""
        service = self.services.select_related('category').order_by('created_at').first()
        return service.category.name if service else ServiceCategory.GENERAL

    @transaction.atomic
    def recalc_ratings(self) -> None:
        """Recalculate rating aggregates from every review of this contractor."""
        ContractorProfile.objects.select_for_update().values('pk').get(pk=self.pk)
        aggregates = Review.objects.filter(contractor=self).aggregate(avg=Avg('rating'), count=Count('id'))
        if aggregates['avg'] is None:
            self.avg_rating = Decimal('0.00')
        else:
            self.avg_rating = Decimal(str(aggregates['avg'])).quantize(Decimal('0.01'))
        self.total_reviews = aggregates['count']
        self.save(update_fields=['avg_rating', 'total_reviews', 'updated_at'])
        logger.info(
            "Contractor %s rating recalculated: avg=%s total=%s", self.pk, self.avg_rating, self.total_reviews
        )

    def record_completed_job(self) -> None:
        ContractorProfile.objects.filter(pk=self.pk).update(total_jobs=F('total_jobs') + 1)
        self.refresh_from_db(fields=['total_jobs'])


class ContractorService(TimestampedModel):
    contractor = models.ForeignKey(ContractorProfile, on_delete=models.CASCADE, related_name='services')
    category = models.ForeignKey(ServiceCategory, on_delete=models.CASCADE, related_name='contractor_services')
    price_range_min = models.DecimalField(max_digits=10, decimal_places=2, null=True, blank=True)
    price_range_max = models.DecimalField(max_digits=10, decimal_places=2, null=True, blank=True)
    description = models.TextField(blank=True)

    class Meta:
        constraints = [
            models.UniqueConstraint(fields=['contractor', 'category'], name='unique_contractor_category'),
        ]

    def __str__(self) -> str:  # pragma: no cover
        return f"{self.contractor} - {self.category}"


class Availability(BaseModel):
    contractor = models.ForeignKey(ContractorProfile, on_delete=models.CASCADE, related_name='availabilities')
    day_of_week = models.PositiveSmallIntegerField(validators=[MinValueValidator(0), MaxValueValidator(6)])
    start_time = models.TimeField()
    end_time = models.TimeField()
    is_available = models.BooleanField(default=True)

    class Meta:
        ordering = ['day_of_week', 'start_time']
        verbose_name_plural = 'availability'


class JobRequest(TimestampedModel):
    URGENCY_LOW = 'low'
    URGENCY_MEDIUM = 'medium'
    URGENCY_HIGH = 'high'
    URGENCY_EMERGENCY = 'emergency'
    URGENCY_CHOICES = [
        (URGENCY_LOW, 'Low'),
        (URGENCY_MEDIUM, 'Medium'),
        (URGENCY_HIGH, 'High'),
        (URGENCY_EMERGENCY, 'Emergency'),
    ]

    STATUS_OPEN = 'open'
    STATUS_QUOTED = 'quoted'
    STATUS_ASSIGNED = 'assigned'
    STATUS_IN_PROGRESS = 'in_progress'
    STATUS_COMPLETED = 'completed'
    STATUS_CANCELLED = 'cancelled'
    STATUS_CHOICES = [
        (STATUS_OPEN, 'Open'),
        (STATUS_QUOTED, 'Quoted'),
        (STATUS_ASSIGNED, 'Assigned'),
        (STATUS_IN_PROGRESS, 'In progress'),
        (STATUS_COMPLETED, 'Completed'),
        (STATUS_CANCELLED, 'Cancelled'),
    ]

    customer = models.ForeignKey(Profile, on_delete=models.CASCADE, related_name='job_requests')
    category = models.ForeignKey(ServiceCategory, on_delete=models.PROTECT, related_name='job_requests')
    title = models.CharField(max_length=255)
    description = models.TextField(blank=True)
    location = models.CharField(max_length=255, blank=True)
    budget_min = models.DecimalField(max_digits=10, decimal_places=2, null=True, blank=True)
    budget_max = models.DecimalField(max_digits=10, decimal_places=2, null=True, blank=True)
    preferred_date = models.DateField(null=True, blank=True)
    urgency = models.CharField(max_length=20, choices=URGENCY_CHOICES, default=URGENCY_MEDIUM)
    status = models.CharField(max_length=20, choices=STATUS_CHOICES, default=STATUS_OPEN, db_index=True)

    class Meta:
        ordering = ['-created_at']
        indexes = [models.Index(fields=['status', 'created_at'], name='job_status_created_idx')]

    ALLOWED_TRANSITIONS = {
        STATUS_OPEN: {STATUS_QUOTED, STATUS_ASSIGNED, STATUS_CANCELLED},
        STATUS_QUOTED: {STATUS_ASSIGNED},
        STATUS_ASSIGNED: {STATUS_IN_PROGRESS},
        STATUS_IN_PROGRESS: {STATUS_COMPLETED},
    }
    ACCEPTING_QUOTES = {STATUS_OPEN, STATUS_QUOTED}

    def __str__(self) -> str:  # pragma: no cover
        return self.title

    def change_status(self, new_status: str) -> None:
        """Enforce finite state machine for job statuses."""
        allowed = self.ALLOWED_TRANSITIONS.get(self.status, set())
        if new_status not in allowed:
            raise InvalidTransition(f"Invalid transition from {self.status} to {new_status}")
        old_status = self.status
        self.status = new_status
        self.save(update_fields=['status', 'updated_at'])
        logger.info("Job %s moved from %s to %s", self.pk, old_status, new_status)

    def cancel(self) -> None:
        if self.status != self.STATUS_OPEN:
            raise InvalidTransition('Only open jobs can be cancelled')
        self.change_status(self.STATUS_CANCELLED)

    @transaction.atomic
    def accept_quote(self, quote: 'Quote', final_price: Optional[Decimal] = None) -> 'Quote':
        """Accept one quote, assign the job and reject the remaining pending quotes."""
        self.status = JobRequest.objects.select_for_update().values_list('status', flat=True).get(pk=self.pk)
        if self.status not in self.ACCEPTING_QUOTES:
            raise InvalidTransition(f"Cannot accept a quote for a job that is {self.status}")
        if quote.job_request_id != self.pk:
            raise InvalidTransition('Quote does not belong to this job')
        quote.status = Quote.objects.select_for_update().values_list('status', flat=True).get(pk=quote.pk)
        if quote.status != Quote.STATUS_PENDING:
            raise InvalidTransition(f"Cannot accept a quote that is {quote.status}")

        quote.status = Quote.STATUS_ACCEPTED
        if final_price is not None:
            quote.quoted_price = final_price
        quote.save(update_fields=['status', 'quoted_price', 'updated_at'])

        self.change_status(self.STATUS_ASSIGNED)

        rejected = (
            self.quotes.filter(status=Quote.STATUS_PENDING)
            .exclude(pk=quote.pk)
            .update(status=Quote.STATUS_REJECTED, updated_at=timezone.now())
        )
        logger.info("Quote %s accepted for job %s at %s; %s other quotes rejected", quote.pk, self.pk, quote.quoted_price, rejected)
        return quote


class Quote(TimestampedModel):
    STATUS_PENDING = 'pending'
    STATUS_ACCEPTED = 'accepted'
    STATUS_REJECTED = 'rejected'
    STATUS_WITHDRAWN = 'withdrawn'
    STATUS_CHOICES = [
        (STATUS_PENDING, 'Pending'),
        (STATUS_ACCEPTED, 'Accepted'),
        (STATUS_REJECTED, 'Rejected'),
        (STATUS_WITHDRAWN, 'Withdrawn'),
    ]

    job_request = models.ForeignKey(JobRequest, on_delete=models.CASCADE, related_name='quotes')
    contractor = models.ForeignKey(ContractorProfile, on_delete=models.CASCADE, related_name='quotes')
    quoted_price = models.DecimalField(max_digits=10, decimal_places=2, validators=[MinValueValidator(Decimal('0'))])
    estimated_duration = models.CharField(max_length=100, blank=True)
    message = models.TextField(blank=True)
    status = models.CharField(max_length=20, choices=STATUS_CHOICES, default=STATUS_PENDING, db_index=True)

    class Meta:
        ordering = ['-created_at']
        constraints = [
            models.UniqueConstraint(fields=['job_request', 'contractor'], name='unique_quote_per_contractor'),
        ]

    def __str__(self) -> str:  # pragma: no cover
        return f"Quote({self.contractor} on {self.job_request})"

    @classmethod
    @transaction.atomic
    def submit(
        cls,
        job: JobRequest,
        contractor: ContractorProfile,
        quoted_price: Decimal,
        estimated_duration: str = '',
        message: str = '',
    ) -> 'Quote':
        """Create a contractor's quote on a job, or revise their pending one."""
        if job.status not in JobRequest.ACCEPTING_QUOTES:
            raise InvalidTransition('This job is no longer accepting quotes')
        existing = cls.objects.select_for_update().filter(job_request=job, contractor=contractor).first()
        if existing is None:
            quote = cls.objects.create(
                job_request=job,
                contractor=contractor,
                quoted_price=quoted_price,
                estimated_duration=estimated_duration,
                message=message,
            )
            logger.info("Contractor %s quoted %s on job %s", contractor.pk, quoted_price, job.pk)
            return quote
        if existing.status == cls.STATUS_ACCEPTED:
            raise InvalidTransition('Cannot modify an accepted quote')
        if existing.status != cls.STATUS_PENDING:
            raise InvalidTransition(f"Cannot modify a {existing.status} quote")
        existing.quoted_price = quoted_price
        existing.estimated_duration = estimated_duration
        existing.message = message
        existing.save(update_fields=['quoted_price', 'estimated_duration', 'message', 'updated_at'])
        logger.info("Contractor %s revised quote %s to %s", contractor.pk, existing.pk, quoted_price)
        return existing

    def withdraw(self) -> None:
        if self.status != self.STATUS_PENDING:
            raise InvalidTransition(f"Cannot withdraw a {self.status} quote")
        self.status = self.STATUS_WITHDRAWN
        self.save(update_fields=['status', 'updated_at'])


class Booking(TimestampedModel):
    STATUS_SCHEDULED = 'scheduled'
    STATUS_IN_PROGRESS = 'in_progress'
    STATUS_COMPLETED = 'completed'
    STATUS_CANCELLED = 'cancelled'
    STATUS_CHOICES = [
        (STATUS_SCHEDULED, 'Scheduled'),
        (STATUS_IN_PROGRESS, 'In progress'),
        (STATUS_COMPLETED, 'Completed'),
        (STATUS_CANCELLED, 'Cancelled'),
    ]

    job_request = models.ForeignKey(JobRequest, on_delete=models.CASCADE, related_name='bookings')
    quote = models.ForeignKey(Quote, on_delete=models.CASCADE, related_name='bookings')
    contractor = models.ForeignKey(ContractorProfile, on_delete=models.CASCADE, related_name='bookings')
    customer = models.ForeignKey(Profile, on_delete=models.CASCADE, related_name='bookings')
    scheduled_date = models.DateTimeField(db_index=True)
    status = models.CharField(max_length=20, choices=STATUS_CHOICES, default=STATUS_SCHEDULED, db_index=True)
    completion_date = models.DateTimeField(null=True, blank=True)
    notes = models.TextField(blank=True)

    class Meta:
        ordering = ['-created_at']
        indexes = [models.Index(fields=['status', 'scheduled_date'], name='booking_status_date_idx')]

    ALLOWED_TRANSITIONS = {
        STATUS_SCHEDULED: {STATUS_IN_PROGRESS, STATUS_CANCELLED},
        STATUS_IN_PROGRESS: {STATUS_COMPLETED, STATUS_CANCELLED},
    }

    @transaction.atomic
    def change_status(self, new_status: str) -> None:
        """Enforce finite state machine for booking statuses."""
        allowed = self.ALLOWED_TRANSITIONS.get(self.status, set())
        if new_status not in allowed:
            raise InvalidTransition(f"Invalid transition from {self.status} to {new_status}")
        self.status = new_status
        update_fields = ['status', 'updated_at']
        if new_status == self.STATUS_COMPLETED:
            self.completion_date = timezone.now()
            update_fields.append('completion_date')
            self.contractor.record_completed_job()
        self.save(update_fields=update_fields)
        logger.info("Booking %s is now %s", self.pk, new_status)


class Review(TimestampedModel):
    booking = models.OneToOneField(Booking, on_delete=models.CASCADE, null=True, blank=True, related_name='review')
    contractor = models.ForeignKey(ContractorProfile, on_delete=models.CASCADE, related_name='reviews')
    customer = models.ForeignKey(Profile, on_delete=models.CASCADE, related_name='reviews_written')
    rating = models.PositiveSmallIntegerField(validators=[MinValueValidator(1), MaxValueValidator(5)])
    title = models.CharField(max_length=255, blank=True)
    comment = models.TextField(blank=True)
    response = models.TextField(blank=True)
    response_date = models.DateTimeField(null=True, blank=True)

    class Meta:
        ordering = ['-created_at']

    def save(self, *args, **kwargs):
        super().save(*args, **kwargs)
        self.contractor.recalc_ratings()

    def respond(self, text: str) -> None:
        if self.response:
            raise InvalidTransition('This review already has a response')
        self.response = text
        self.response_date = timezone.now()
        self.save(update_fields=['response', 'response_date', 'updated_at'])


@receiver(post_delete, sender=Review)
def refresh_ratings_after_review_delete(sender, instance: Review, **kwargs) -> None:
    # Also fires for reviews removed by a booking cascade.
    contractor = ContractorProfile.objects.filter(pk=instance.contractor_id).first()
    if contractor is not None:
        contractor.recalc_ratings()


class Message(TimestampedModel):
    job_request = models.ForeignKey(
        JobRequest, on_delete=models.SET_NULL, null=True, blank=True, related_name='messages'
    )
    sender = models.ForeignKey(Profile, on_delete=models.CASCADE, related_name='messages_sent')
    receiver = models.ForeignKey(Profile, on_delete=models.CASCADE, related_name='messages_received')
    message = models.TextField()
    is_read = models.BooleanField(default=False)

    class Meta:
        ordering = ['-created_at']
        indexes = [models.Index(fields=['job_request', 'sender', 'receiver'], name='message_conversation_idx')]


def project_image_path(instance: 'ProjectImage', filename: str) -> str:
    """Storage key ``project-images/<contractor>/<timestamp>-<random>.<ext>``."""
    ext = os.path.splitext(filename)[1].lstrip('.').lower() or 'jpg'
    stamp = int(timezone.now().timestamp() * 1000)
    return f"project-images/{instance.project.contractor_id}/{stamp}-{secrets.token_hex(4)}.{ext}"


class ContractorProject(TimestampedModel):
    contractor = models.ForeignKey(ContractorProfile, on_delete=models.CASCADE, related_name='projects')
    category = models.ForeignKey(
        ServiceCategory, on_delete=models.SET_NULL, null=True, blank=True, related_name='projects'
    )
    title = models.CharField(max_length=255)
    description = models.TextField(blank=True)
    completion_date = models.DateField(null=True, blank=True)
    project_value = models.DecimalField(max_digits=12, decimal_places=2, null=True, blank=True)
    location = models.CharField(max_length=255, blank=True)

    class Meta:
        ordering = ['-completion_date', '-created_at']

    def __str__(self) -> str:  # pragma: no cover
        return self.title


class ProjectImage(TimestampedModel):
    project = models.ForeignKey(ContractorProject, on_delete=models.CASCADE, related_name='images')
    image = models.ImageField(upload_to=project_image_path, max_length=255)

    def delete(self, *args, **kwargs):
        storage, name = self.image.storage, self.image.name
        result = super().delete(*args, **kwargs)
        if name:
            transaction.on_commit(lambda: storage.delete(name))
        return result


# Utility functions


def default_category() -> ServiceCategory:
    category, _ = ServiceCategory.objects.get_or_create(name=ServiceCategory.GENERAL)
    return category


@transaction.atomic
def create_direct_booking(
    customer: Profile,
    contractor: ContractorProfile,
    scheduled_date: datetime,
    description: str = '',
    category: Optional[ServiceCategory] = None,
) -> Booking:
    """Create the job, placeholder quote and booking for a direct booking request."""
    job = JobRequest.objects.create(
        customer=customer,
        category=category or default_category(),
        title='Booking Request',
        description=description,
        status=JobRequest.STATUS_OPEN,
    )
    quote = Quote.objects.create(
        job_request=job,
        contractor=contractor,
        quoted_price=Decimal('0.00'),
        message='Pending quote',
        status=Quote.STATUS_PENDING,
    )
    booking = Booking.objects.create(
        job_request=job,
        quote=quote,
        contractor=contractor,
        customer=customer,
        scheduled_date=scheduled_date,
        status=Booking.STATUS_SCHEDULED,
        notes=description,
    )
    logger.info("Direct booking %s created for customer %s with contractor %s", booking.pk, customer.pk, contractor.pk)
    return booking


def group_conversations(messages: Iterable[Message], caller_id: uuid.UUID) -> list[dict]:
    """Fold a caller's messages into one summary per (job, other party)."""
    ordered = sorted(messages, key=lambda m: (m.created_at, str(m.pk)), reverse=True)
    conversations: dict[tuple, dict] = {}
    for msg in ordered:
        if msg.job_request_id is None:
            continue
        outgoing = msg.sender_id == caller_id
        other = msg.receiver if outgoing else msg.sender
        key = (msg.job_request_id, other.pk)
        summary = conversations.get(key)
        if summary is None:
            summary = conversations[key] = {
                'job_request_id': msg.job_request_id,
                'job_title': msg.job_request.title,
                'other_party_id': other.pk,
                'other_party_name': other.full_name,
                'last_message': msg.message,
                'last_message_time': msg.created_at,
                'unread_count': 0,
            }
        if msg.receiver_id == caller_id and not msg.is_read:
            summary['unread_count'] += 1
    return list(conversations.values())


def conversation_messages(job_request_id: uuid.UUID, caller_id: uuid.UUID, other_party_id: uuid.UUID):
    return Message.objects.filter(job_request_id=job_request_id).filter(
        Q(sender_id=caller_id, receiver_id=other_party_id) | Q(sender_id=other_party_id, receiver_id=caller_id)
    )


@transaction.atomic
def delete_conversation(job_request_id: uuid.UUID, caller_id: uuid.UUID, other_party_id: uuid.UUID) -> int:
    ids = list(conversation_messages(job_request_id, caller_id, other_party_id).values_list('id', flat=True))
    Message.objects.filter(id__in=ids).delete()
    logger.info("Profile %s deleted %s messages with %s on job %s", caller_id, len(ids), other_party_id, job_request_id)
    return len(ids)


def mark_conversation_read(job_request_id: uuid.UUID, caller_id: uuid.UUID, other_party_id: uuid.UUID) -> int:
    return (
        conversation_messages(job_request_id, caller_id, other_party_id)
        .filter(receiver_id=caller_id, is_read=False)
        .update(is_read=True, updated_at=timezone.now())
    )


def _month_start(moment: datetime) -> datetime:
    return moment.replace(day=1, hour=0, minute=0, second=0, microsecond=0)


def contractor_stats(contractor: ContractorProfile, now: Optional[datetime] = None) -> dict:
    """Dashboard figures for a contractor."""
    now = now or timezone.now()
    this_month = _month_start(now)
    last_month = _month_start(this_month - timedelta(days=1))
    completed = contractor.bookings.filter(status=Booking.STATUS_COMPLETED)

    def earnings(start: datetime, end: Optional[datetime] = None) -> Decimal:
        qs = completed.filter(completion_date__gte=start)
        if end is not None:
            qs = qs.filter(completion_date__lt=end)
        return qs.aggregate(total=Sum('quote__quoted_price'))['total'] or Decimal('0.00')

    completed_count = completed.count()
    cancelled_count = contractor.bookings.filter(status=Booking.STATUS_CANCELLED).count()
    finished = completed_count + cancelled_count
    success_rate = Decimal(completed_count * 100) / finished if finished else Decimal('0')
    return {
        'accepted_quotes': contractor.quotes.filter(status=Quote.STATUS_ACCEPTED).count(),
        'active_bookings': contractor.bookings.filter(
            status__in=[Booking.STATUS_SCHEDULED, Booking.STATUS_IN_PROGRESS]
        ).count(),
        'completed_bookings': completed_count,
        'earnings_this_month': earnings(this_month),
        'earnings_last_month': earnings(last_month, this_month),
        'avg_rating': contractor.avg_rating,
        'review_count': contractor.total_reviews,
        'success_rate': success_rate.quantize(Decimal('0.01')),
    }
