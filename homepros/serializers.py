"""Serializers for the marketplace API."""
from __future__ import annotations

from datetime import datetime
from decimal import Decimal
from typing import Any, Optional

from django.utils import timezone
from rest_framework import serializers

from .models import (
    Booking,
    ContractorProfile,
    ContractorProject,
    ContractorService,
    JobRequest,
    Message,
    Profile,
    ProjectImage,
    Quote,
    Review,
    ServiceCategory,
)


def _number(value: Optional[Decimal]) -> Optional[float]:
    return float(value) if value is not None else None


class ProfileSerializer(serializers.ModelSerializer):
    class Meta:
        model = Profile
        fields = ['id', 'email', 'full_name', 'phone', 'avatar_url', 'user_type', 'created_at']
        read_only_fields = ['id', 'user_type', 'created_at']


class OnboardingSerializer(serializers.Serializer):
    user_type = serializers.ChoiceField(choices=[Profile.TYPE_CUSTOMER, Profile.TYPE_CONTRACTOR])
    full_name = serializers.CharField(max_length=255, required=False, allow_blank=True)
    phone = serializers.CharField(max_length=30, required=False, allow_blank=True)


class ServiceCategorySerializer(serializers.ModelSerializer):
    class Meta:
        model = ServiceCategory
        fields = ['id', 'name', 'description', 'icon_url']


class ContractorProfileSerializer(serializers.ModelSerializer):
    class Meta:
        model = ContractorProfile
        fields = [
            'id',
            'business_name',
            'bio',
            'years_experience',
            'license_number',
            'insurance_verified',
            'address',
            'city',
            'state',
            'zip_code',
            'hourly_rate',
            'min_project_size',
            'status',
            'avg_rating',
            'total_reviews',
            'total_jobs',
        ]
        read_only_fields = ['id', 'insurance_verified', 'status', 'avg_rating', 'total_reviews', 'total_jobs']


class ContractorServiceSerializer(serializers.ModelSerializer):
    category = ServiceCategorySerializer(read_only=True)

    class Meta:
        model = ContractorService
        fields = ['id', 'category', 'price_range_min', 'price_range_max', 'description']


class ContractorServiceItemSerializer(serializers.Serializer):
    category_id = serializers.UUIDField()
    price_range_min = serializers.DecimalField(max_digits=10, decimal_places=2, required=False, allow_null=True)
    price_range_max = serializers.DecimalField(max_digits=10, decimal_places=2, required=False, allow_null=True)
    description = serializers.CharField(required=False, allow_blank=True)

    def validate(self, attrs: dict[str, Any]) -> dict[str, Any]:
        low, high = attrs.get('price_range_min'), attrs.get('price_range_max')
        if low is not None and high is not None and low > high:
            raise serializers.ValidationError('Minimum price cannot exceed maximum price')
        return attrs


class ContractorServicesAddSerializer(serializers.Serializer):
    services = ContractorServiceItemSerializer(many=True, allow_empty=False)

    def validate_services(self, value: list[dict[str, Any]]) -> list[dict[str, Any]]:
        ids = {item['category_id'] for item in value}
        found = set(ServiceCategory.objects.filter(id__in=ids).values_list('id', flat=True))
        missing = ids - found
        if missing:
            raise serializers.ValidationError(f"Unknown service categories: {', '.join(sorted(map(str, missing)))}")
        return value


class ContractorListSerializer(serializers.ModelSerializer):
    """Flattened directory entry."""

    class Meta:
        model = ContractorProfile
        fields = ['id']

    def to_representation(self, obj: ContractorProfile) -> dict[str, Any]:
        profile = getattr(obj.user, 'profile', None)
        return {
            'id': str(obj.id),
            'name': obj.business_name,
            'email': profile.email if profile else '',
            'phone': profile.phone if profile else '',
            'specialty': obj.specialty,
            'location': f"{obj.city}, {obj.state}".strip(),
            'rating': float(obj.avg_rating),
            'reviewCount': obj.total_reviews,
            'hourlyRate': _number(obj.hourly_rate) or 0,
        }


class ContractorDetailSerializer(ContractorListSerializer):
    def to_representation(self, obj: ContractorProfile) -> dict[str, Any]:
        data = super().to_representation(obj)
        has_availability = obj.availabilities.filter(is_available=True).exists()
        data.update(
            {
                'bio': obj.bio,
                'experience': f"{obj.years_experience or 0} years",
                'availability': 'Available' if has_availability else 'Contact for availability',
                'services': ContractorServiceSerializer(obj.services.select_related('category'), many=True).data,
            }
        )
        return data


class ContractorStatsSerializer(serializers.Serializer):
    accepted_quotes = serializers.IntegerField()
    active_bookings = serializers.IntegerField()
    completed_bookings = serializers.IntegerField()
    earnings_this_month = serializers.DecimalField(max_digits=12, decimal_places=2)
    earnings_last_month = serializers.DecimalField(max_digits=12, decimal_places=2)
    avg_rating = serializers.DecimalField(max_digits=3, decimal_places=2)
    review_count = serializers.IntegerField()
    success_rate = serializers.DecimalField(max_digits=5, decimal_places=2)


class JobRequestSerializer(serializers.ModelSerializer):
    category = serializers.PrimaryKeyRelatedField(queryset=ServiceCategory.objects.all())
    category_name = serializers.CharField(source='category.name', read_only=True)

    class Meta:
        model = JobRequest
        fields = [
            'id',
            'customer',
            'category',
            'category_name',
            'title',
            'description',
            'location',
            'budget_min',
            'budget_max',
            'preferred_date',
            'urgency',
            'status',
            'created_at',
            'updated_at',
        ]
        read_only_fields = ['id', 'customer', 'status', 'created_at', 'updated_at']

    def validate(self, attrs: dict[str, Any]) -> dict[str, Any]:
        low = attrs.get('budget_min', getattr(self.instance, 'budget_min', None))
        high = attrs.get('budget_max', getattr(self.instance, 'budget_max', None))
        if low is not None and high is not None and low > high:
            raise serializers.ValidationError('Minimum budget cannot exceed maximum budget')
        return attrs


class AvailableJobSerializer(serializers.ModelSerializer):
    category_name = serializers.CharField(source='category.name', read_only=True)
    customer_name = serializers.CharField(source='customer.full_name', read_only=True)

    class Meta:
        model = JobRequest
        fields = [
            'id',
            'title',
            'description',
            'location',
            'budget_min',
            'budget_max',
            'preferred_date',
            'urgency',
            'status',
            'created_at',
            'category',
            'category_name',
            'customer_name',
        ]


class QuoteSerializer(serializers.ModelSerializer):
    contractor_name = serializers.CharField(source='contractor.business_name', read_only=True)

    class Meta:
        model = Quote
        fields = [
            'id',
            'job_request',
            'contractor',
            'contractor_name',
            'quoted_price',
            'estimated_duration',
            'message',
            'status',
            'created_at',
            'updated_at',
        ]
        read_only_fields = fields


class QuoteSubmitSerializer(serializers.Serializer):
    job_request_id = serializers.UUIDField()
    quoted_price = serializers.DecimalField(max_digits=10, decimal_places=2, min_value=Decimal('0.01'))
    estimated_duration = serializers.CharField(max_length=100, required=False, allow_blank=True, default='')
    message = serializers.CharField(required=False, allow_blank=True, default='')

    def validate_job_request_id(self, value):
        try:
            return JobRequest.objects.get(id=value)
        except JobRequest.DoesNotExist as exc:
            raise serializers.ValidationError('Job request not found') from exc

    def create(self, validated_data: dict[str, Any]) -> Quote:
        return Quote.submit(
            job=validated_data['job_request_id'],
            contractor=self.context['contractor'],
            quoted_price=validated_data['quoted_price'],
            estimated_duration=validated_data['estimated_duration'],
            message=validated_data['message'],
        )


class AcceptQuoteSerializer(serializers.Serializer):
    quote_id = serializers.UUIDField()
    final_price = serializers.DecimalField(
        max_digits=10, decimal_places=2, min_value=Decimal('0.01'), required=False, allow_null=True
    )


class BookingSerializer(serializers.ModelSerializer):
    class Meta:
        model = Booking
        fields = '__all__'


class CustomerBookingSerializer(serializers.ModelSerializer):
    """Booking flattened for the customer's booking list."""

    class Meta:
        model = Booking
        fields = ['id']

    def to_representation(self, booking: Booking) -> dict[str, Any]:
        scheduled = timezone.localtime(booking.scheduled_date)
        return {
            'id': str(booking.id),
            'contractorId': str(booking.contractor_id),
            'contractorName': booking.contractor.business_name,
            'specialty': booking.contractor.specialty,
            'status': booking.status,
            'date': scheduled.date().isoformat(),
            'time': scheduled.strftime('%H:%M'),
            'description': booking.notes,
            'createdAt': booking.created_at.isoformat(),
            'estimatedCost': _number(booking.quote.quoted_price) or None,
        }


class BookingCreateSerializer(serializers.Serializer):
    contractor_id = serializers.UUIDField()
    customer_id = serializers.UUIDField(error_messages={'required': 'Customer ID required'})
    date = serializers.DateField()
    time = serializers.TimeField()
    description = serializers.CharField(required=False, allow_blank=True, default='')
    category_id = serializers.UUIDField(required=False, allow_null=True)

    def validate(self, attrs: dict[str, Any]) -> dict[str, Any]:
        try:
            attrs['contractor'] = ContractorProfile.objects.get(id=attrs['contractor_id'])
        except ContractorProfile.DoesNotExist as exc:
            raise serializers.ValidationError('Contractor not found') from exc

        category_id = attrs.get('category_id')
        attrs['category'] = None
        if category_id:
            try:
                attrs['category'] = ServiceCategory.objects.get(id=category_id)
            except ServiceCategory.DoesNotExist as exc:
                raise serializers.ValidationError('Service category not found') from exc

        scheduled = datetime.combine(attrs['date'], attrs['time'])
        attrs['scheduled_date'] = timezone.make_aware(scheduled) if timezone.is_naive(scheduled) else scheduled
        return attrs


class ReviewSerializer(serializers.ModelSerializer):
    class Meta:
        model = Review
        fields = [
            'id',
            'booking',
            'contractor',
            'customer',
            'rating',
            'title',
            'comment',
            'response',
            'response_date',
            'created_at',
        ]
        read_only_fields = fields


class ReviewCreateSerializer(serializers.Serializer):
    booking_id = serializers.UUIDField(required=False, allow_null=True)
    contractor_id = serializers.UUIDField()
    rating = serializers.IntegerField(
        min_value=1,
        max_value=5,
        error_messages={
            'min_value': 'Rating must be between 1 and 5',
            'max_value': 'Rating must be between 1 and 5',
        },
    )
    title = serializers.CharField(required=False, allow_blank=True, allow_null=True)
    comment = serializers.CharField(required=False, allow_blank=True, allow_null=True)

    def validate_contractor_id(self, value):
        try:
            return ContractorProfile.objects.get(id=value)
        except ContractorProfile.DoesNotExist as exc:
            raise serializers.ValidationError('Invalid booking or contractor ID') from exc

    def validate(self, attrs: dict[str, Any]) -> dict[str, Any]:
        for field in ('title', 'comment'):
            attrs[field] = (attrs.get(field) or '').strip()
        return attrs


class ContractorReviewSerializer(serializers.ModelSerializer):
    class Meta:
        model = Review
        fields = ['id']

    def to_representation(self, review: Review) -> dict[str, Any]:
        return {
            'id': str(review.id),
            'customerName': review.customer.full_name or 'Anonymous',
            'rating': review.rating,
            'title': review.title,
            'comment': review.comment,
            'response': review.response,
            'date': review.created_at.isoformat(),
        }


class ReviewResponseSerializer(serializers.Serializer):
    response = serializers.CharField()

    def validate_response(self, value: str) -> str:
        value = value.strip()
        if not value:
            raise serializers.ValidationError('Response cannot be empty')
        return value


class MessageSerializer(serializers.ModelSerializer):
    sender = serializers.PrimaryKeyRelatedField(read_only=True)
    receiver = serializers.PrimaryKeyRelatedField(queryset=Profile.objects.all())
    job_request = serializers.PrimaryKeyRelatedField(queryset=JobRequest.objects.all())

    class Meta:
        model = Message
        fields = ['id', 'job_request', 'sender', 'receiver', 'message', 'is_read', 'created_at', 'updated_at']
        read_only_fields = ['id', 'sender', 'is_read', 'created_at', 'updated_at']

    def validate_message(self, value: str) -> str:
        value = value.strip()
        if not value:
            raise serializers.ValidationError('Message cannot be empty')
        return value

    def validate(self, attrs: dict[str, Any]) -> dict[str, Any]:
        sender = self.context['profile']
        if attrs['receiver'] == sender:
            raise serializers.ValidationError('You cannot message yourself')
        return attrs


class MessageEditSerializer(serializers.ModelSerializer):
    class Meta:
        model = Message
        fields = ['id', 'job_request', 'sender', 'receiver', 'message', 'is_read', 'created_at', 'updated_at']
        read_only_fields = ['id', 'job_request', 'sender', 'receiver', 'is_read', 'created_at', 'updated_at']

    def validate_message(self, value: str) -> str:
        value = value.strip()
        if not value:
            raise serializers.ValidationError('Message cannot be empty')
        return value


class ConversationKeySerializer(serializers.Serializer):
    job_request_id = serializers.UUIDField()
    other_party_id = serializers.UUIDField()


class ConversationSerializer(serializers.Serializer):
    job_request_id = serializers.UUIDField()
    job_title = serializers.CharField()
    other_party_id = serializers.UUIDField()
    other_party_name = serializers.CharField()
    last_message = serializers.CharField()
    last_message_time = serializers.DateTimeField()
    unread_count = serializers.IntegerField()


class ProjectImageSerializer(serializers.ModelSerializer):
    class Meta:
        model = ProjectImage
        fields = ['id', 'image', 'created_at']
        read_only_fields = ['id', 'created_at']


class ContractorProjectSerializer(serializers.ModelSerializer):
    images = ProjectImageSerializer(many=True, read_only=True)
    category = serializers.PrimaryKeyRelatedField(
        queryset=ServiceCategory.objects.all(), required=False, allow_null=True
    )

    class Meta:
        model = ContractorProject
        fields = [
            'id',
            'contractor',
            'category',
            'title',
            'description',
            'completion_date',
            'project_value',
            'location',
            'images',
            'created_at',
        ]
        read_only_fields = ['id', 'contractor', 'created_at']
