"""API views for the home services marketplace."""
from __future__ import annotations

import logging
import uuid
from decimal import Decimal

from django.core.exceptions import ValidationError as DjangoValidationError
from django.db import IntegrityError, transaction
from django.db.models import Q
from django.shortcuts import get_object_or_404
from rest_framework import generics, mixins, permissions, status, viewsets
from rest_framework.decorators import action
from rest_framework.exceptions import NotFound, PermissionDenied, ValidationError
from rest_framework.response import Response

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
    contractor_stats,
    create_direct_booking,
    delete_conversation,
    group_conversations,
    mark_conversation_read,
)
from .serializers import (
    AcceptQuoteSerializer,
    AvailableJobSerializer,
    BookingCreateSerializer,
    BookingSerializer,
    ContractorDetailSerializer,
    ContractorListSerializer,
    ContractorProfileSerializer,
    ContractorProjectSerializer,
    ContractorReviewSerializer,
    ContractorServiceSerializer,
    ContractorServicesAddSerializer,
    ContractorStatsSerializer,
    ConversationKeySerializer,
    ConversationSerializer,
    CustomerBookingSerializer,
    JobRequestSerializer,
    MessageEditSerializer,
    MessageSerializer,
    OnboardingSerializer,
    ProfileSerializer,
    ProjectImageSerializer,
    QuoteSerializer,
    QuoteSubmitSerializer,
    ReviewCreateSerializer,
    ReviewResponseSerializer,
    ReviewSerializer,
    ServiceCategorySerializer,
)

logger = logging.getLogger(__name__)

PROFILE_MISSING = 'Profile not found. Please complete your profile setup first.'


def get_profile(user) -> Profile:
    try:
        return user.profile
    except Profile.DoesNotExist as exc:
        raise NotFound(PROFILE_MISSING) from exc


def get_customer(user) -> Profile:
    profile = get_profile(user)
    if not profile.is_customer:
        raise PermissionDenied('Only customers can perform this action')
    return profile


def get_contractor(user) -> ContractorProfile:
    try:
        return user.contractorprofile
    except ContractorProfile.DoesNotExist as exc:
        raise PermissionDenied('Contractor profile not found') from exc


def parse_uuid_list(raw: str, name: str) -> list[uuid.UUID]:
    values = [part.strip() for part in raw.split(',') if part.strip()]
    try:
        return [uuid.UUID(value) for value in values]
    except ValueError as exc:
        raise ValidationError({name: 'Expected a comma separated list of ids'}) from exc


class MeView(generics.GenericAPIView):
    def get(self, request, *args, **kwargs):
        data = {'user': request.user.username}
        try:
            data['profile'] = ProfileSerializer(request.user.profile).data
        except Profile.DoesNotExist:
            data['profile'] = None
        try:
            data['contractor_profile'] = ContractorProfileSerializer(request.user.contractorprofile).data
        except ContractorProfile.DoesNotExist:
            data['contractor_profile'] = None
        return Response(data)


class OnboardingView(generics.GenericAPIView):
    """Create the caller's profile on first sign-in and record their account type."""

    serializer_class = OnboardingSerializer

    def post(self, request, *args, **kwargs):
        serializer = self.get_serializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        data = serializer.validated_data
        profile, created = Profile.objects.get_or_create(
            user=request.user,
            defaults={'email': request.user.email, 'full_name': request.user.get_full_name()},
        )
        profile.assign_user_type(data['user_type'])
        for field in ('full_name', 'phone'):
            if data.get(field):
                setattr(profile, field, data[field])
        profile.save()
        return Response(
            ProfileSerializer(profile).data, status=status.HTTP_201_CREATED if created else status.HTTP_200_OK
        )


class ContractorSetupView(generics.CreateAPIView):
    serializer_class = ContractorProfileSerializer

    def create(self, request, *args, **kwargs):
        profile = get_profile(request.user)
        if not profile.is_contractor:
            raise PermissionDenied('Only contractor accounts can set up a business profile')
        if ContractorProfile.objects.filter(user=request.user).exists():
            raise ValidationError('Contractor profile already exists')
        serializer = self.get_serializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        serializer.save(user=request.user, status=ContractorProfile.STATUS_PENDING)
        return Response(serializer.data, status=status.HTTP_201_CREATED)


class ContractorStatsView(generics.GenericAPIView):
    serializer_class = ContractorStatsSerializer

    def get(self, request, *args, **kwargs):
        contractor = get_contractor(request.user)
        serializer = self.get_serializer(contractor_stats(contractor))
        return Response(serializer.data)


class ContractorViewSet(viewsets.ReadOnlyModelViewSet):
    queryset = ContractorProfile.objects.select_related('user__profile').prefetch_related('services__category')
    serializer_class = ContractorListSerializer
    permission_classes = [permissions.AllowAny]
    search_fields = ['business_name']
    ordering_fields = ['avg_rating', 'hourly_rate', 'total_reviews']
    ordering = ['-avg_rating']

    def get_serializer_class(self):
        if self.action == 'retrieve':
            return ContractorDetailSerializer
        return super().get_serializer_class()

    def get_queryset(self):
        qs = super().get_queryset()
        if self.action != 'list':
            return qs
        qs = qs.filter(status=ContractorProfile.STATUS_APPROVED)
        params = self.request.query_params
        specialty = params.get('specialty')
        location = params.get('location')
        max_rate = params.get('maxRate')
        min_rating = params.get('minRating')
        if specialty:
            qs = qs.filter(services__category__name=specialty)
        if location:
            qs = qs.filter(Q(city__icontains=location) | Q(state__icontains=location))
        try:
            if max_rate:
                qs = qs.filter(hourly_rate__lte=Decimal(max_rate))
            if min_rating:
                qs = qs.filter(avg_rating__gte=Decimal(min_rating))
        except ArithmeticError as exc:
            raise ValidationError('maxRate and minRating must be numbers') from exc
        return qs.distinct()

    @action(detail=True, methods=['get'])
    def reviews(self, request, pk=None):
        contractor = self.get_object()
        reviews = contractor.reviews.select_related('customer')
        return Response(ContractorReviewSerializer(reviews, many=True).data)

    @action(detail=False, methods=['get'])
    def specialties(self, request):
        categories = ServiceCategory.objects.order_by('name')
        return Response(ServiceCategorySerializer(categories, many=True).data)


class ContractorServiceViewSet(
    mixins.ListModelMixin, mixins.DestroyModelMixin, mixins.CreateModelMixin, viewsets.GenericViewSet
):
    serializer_class = ContractorServiceSerializer

    def get_queryset(self):
        return ContractorService.objects.filter(contractor__user=self.request.user).select_related('category')

    def create(self, request, *args, **kwargs):
        contractor = get_contractor(request.user)
        serializer = ContractorServicesAddSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        existing = set(contractor.services.values_list('category_id', flat=True))
        created = []
        with transaction.atomic():
            for item in serializer.validated_data['services']:
                if item['category_id'] in existing:
                    continue
                existing.add(item['category_id'])
                created.append(
                    ContractorService.objects.create(
                        contractor=contractor,
                        category_id=item['category_id'],
                        price_range_min=item.get('price_range_min'),
                        price_range_max=item.get('price_range_max'),
                        description=item.get('description', ''),
                    )
                )
        logger.info("Contractor %s added %s services", contractor.pk, len(created))
        return Response(ContractorServiceSerializer(created, many=True).data, status=status.HTTP_201_CREATED)


class AvailableJobsView(generics.ListAPIView):
    """Open jobs in the requested categories that the caller has not quoted yet."""

    serializer_class = AvailableJobSerializer

    def get_queryset(self):
        params = self.request.query_params
        category_ids = parse_uuid_list(params.get('categoryIds', ''), 'categoryIds')
        quoted_ids = parse_uuid_list(params.get('quotedJobIds', ''), 'quotedJobIds')
        contractor = ContractorProfile.objects.filter(user=self.request.user).first()
        if contractor is not None:
            if 'categoryIds' not in params:
                category_ids = list(contractor.services.values_list('category_id', flat=True))
            quoted_ids.extend(contractor.quotes.values_list('job_request_id', flat=True))
        return (
            JobRequest.objects.filter(status=JobRequest.STATUS_OPEN, category_id__in=category_ids)
            .exclude(id__in=quoted_ids)
            .select_related('category', 'customer')
            .order_by('-created_at')
        )


class JobRequestViewSet(
    mixins.CreateModelMixin,
    mixins.ListModelMixin,
    mixins.RetrieveModelMixin,
    mixins.UpdateModelMixin,
    viewsets.GenericViewSet,
):
    serializer_class = JobRequestSerializer
    filterset_fields = ['status', 'category']

    def get_queryset(self):
        return JobRequest.objects.filter(customer__user=self.request.user).select_related('category')

    def perform_create(self, serializer):
        serializer.save(customer=get_customer(self.request.user), status=JobRequest.STATUS_OPEN)

    def perform_update(self, serializer):
        if serializer.instance.status != JobRequest.STATUS_OPEN:
            raise ValidationError('Only open jobs can be edited')
        serializer.save()

    @action(detail=True, methods=['get'])
    def quotes(self, request, pk=None):
        job = self.get_object()
        quotes = job.quotes.select_related('contractor')
        return Response(QuoteSerializer(quotes, many=True).data)

    @action(detail=True, methods=['post'], url_path='accept-quote')
    def accept_quote(self, request, pk=None):
        job = self.get_object()
        serializer = AcceptQuoteSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        quote = get_object_or_404(job.quotes, pk=serializer.validated_data['quote_id'])
        job.accept_quote(quote, serializer.validated_data.get('final_price'))
        return Response({'status': job.status, 'quote': QuoteSerializer(quote).data})

    @action(detail=True, methods=['post'])
    def start(self, request, pk=None):
        job = self.get_object()
        job.change_status(JobRequest.STATUS_IN_PROGRESS)
        return Response({'status': job.status})

    @action(detail=True, methods=['post'])
    def complete(self, request, pk=None):
        job = self.get_object()
        job.change_status(JobRequest.STATUS_COMPLETED)
        return Response({'status': job.status})

    @action(detail=True, methods=['post'])
    def cancel(self, request, pk=None):
        job = self.get_object()
        job.cancel()
        return Response({'status': job.status})


class QuoteViewSet(
    mixins.CreateModelMixin, mixins.ListModelMixin, mixins.RetrieveModelMixin, viewsets.GenericViewSet
):
    serializer_class = QuoteSerializer
    filterset_fields = ['status', 'job_request']

    def get_queryset(self):
        return Quote.objects.filter(contractor__user=self.request.user).select_related('contractor')

    def create(self, request, *args, **kwargs):
        contractor = get_contractor(request.user)
        serializer = QuoteSubmitSerializer(data=request.data, context={'contractor': contractor})
        serializer.is_valid(raise_exception=True)
        quote = serializer.save()
        return Response(QuoteSerializer(quote).data, status=status.HTTP_201_CREATED)

    @action(detail=True, methods=['post'])
    def withdraw(self, request, pk=None):
        quote = self.get_object()
        quote.withdraw()
        return Response({'status': quote.status})


class BookingViewSet(
    mixins.CreateModelMixin, mixins.ListModelMixin, mixins.RetrieveModelMixin, viewsets.GenericViewSet
):
    queryset = Booking.objects.select_related('contractor', 'customer', 'quote', 'job_request')
    filterset_fields = ['status']

    def get_serializer_class(self):
        if self.action == 'create':
            return BookingCreateSerializer
        if self.action == 'list':
            return CustomerBookingSerializer
        return BookingSerializer

    def get_queryset(self):
        return super().get_queryset().filter(
            Q(customer__user=self.request.user) | Q(contractor__user=self.request.user)
        )

    def _check_customer(self, customer_id) -> Profile:
        profile = get_profile(self.request.user)
        if str(profile.id) != str(customer_id) and not self.request.user.is_staff:
            raise PermissionDenied("You can only manage your own bookings")
        return profile

    def list(self, request, *args, **kwargs):
        customer_id = request.query_params.get('customerId')
        if not customer_id:
            return Response({'detail': 'Customer ID required'}, status=status.HTTP_400_BAD_REQUEST)
        try:
            customer_id = uuid.UUID(customer_id)
        except ValueError as exc:
            raise ValidationError({'customerId': 'Expected a valid id'}) from exc
        self._check_customer(customer_id)
        qs = self.filter_queryset(Booking.objects.filter(customer_id=customer_id)).select_related(
            'contractor', 'quote'
        ).prefetch_related('contractor__services__category')
        return Response(self.get_serializer(qs.order_by('-created_at'), many=True).data)

    def create(self, request, *args, **kwargs):
        serializer = self.get_serializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        data = serializer.validated_data
        customer = self._check_customer(data['customer_id'])
        booking = create_direct_booking(
            customer=customer,
            contractor=data['contractor'],
            scheduled_date=data['scheduled_date'],
            description=data['description'],
            category=data['category'],
        )
        return Response(BookingSerializer(booking).data)

    @action(detail=True, methods=['post'])
    def start(self, request, pk=None):
        booking = self.get_object()
        if booking.contractor.user != request.user:
            return Response(status=status.HTTP_403_FORBIDDEN)
        booking.change_status(Booking.STATUS_IN_PROGRESS)
        return Response({'status': booking.status})

    @action(detail=True, methods=['post'])
    def complete(self, request, pk=None):
        booking = self.get_object()
        if booking.contractor.user != request.user:
            return Response(status=status.HTTP_403_FORBIDDEN)
        booking.change_status(Booking.STATUS_COMPLETED)
        return Response({'status': booking.status})

    @action(detail=True, methods=['post'])
    def cancel(self, request, pk=None):
        booking = self.get_object()
        if request.user not in (booking.customer.user, booking.contractor.user):
            return Response(status=status.HTTP_403_FORBIDDEN)
        booking.change_status(Booking.STATUS_CANCELLED)
        return Response({'status': booking.status})


class ReviewViewSet(
    mixins.CreateModelMixin, mixins.ListModelMixin, mixins.RetrieveModelMixin, viewsets.GenericViewSet
):
    queryset = Review.objects.select_related('customer', 'contractor')
    serializer_class = ReviewSerializer
    filterset_fields = ['contractor', 'booking']

    def create(self, request, *args, **kwargs):
        serializer = ReviewCreateSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        data = serializer.validated_data
        customer = get_profile(request.user)
        contractor = data['contractor_id']

        booking = None
        booking_id = data.get('booking_id')
        if booking_id:
            booking = Booking.objects.filter(id=booking_id).first()
            if booking is None:
                raise NotFound('Booking not found')
            if booking.customer_id != customer.id:
                raise PermissionDenied("Unauthorized: This booking doesn't belong to you")
            if booking.contractor_id != contractor.id:
                raise ValidationError('Invalid booking or contractor ID')
            if Review.objects.filter(booking=booking).exists():
                raise ValidationError('You have already reviewed this booking')

        try:
            with transaction.atomic():
                review = Review.objects.create(
                    booking=booking,
                    contractor=contractor,
                    customer=customer,
                    rating=data['rating'],
                    title=data['title'],
                    comment=data['comment'],
                )
        except IntegrityError as exc:
            logger.warning("Duplicate review rejected for booking %s: %s", booking_id, exc)
            raise ValidationError('You have already reviewed this') from exc
        return Response(ReviewSerializer(review).data)

    @action(detail=True, methods=['post'])
    def respond(self, request, pk=None):
        review = self.get_object()
        if review.contractor.user != request.user:
            return Response(status=status.HTTP_403_FORBIDDEN)
        serializer = ReviewResponseSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        review.respond(serializer.validated_data['response'])
        return Response(ReviewSerializer(review).data)


class MessageViewSet(viewsets.ModelViewSet):
    filterset_fields = ['job_request', 'is_read']

    def get_serializer_class(self):
        if self.action in ('update', 'partial_update'):
            return MessageEditSerializer
        return MessageSerializer

    def get_serializer_context(self):
        context = super().get_serializer_context()
        context['profile'] = get_profile(self.request.user)
        return context

    def get_queryset(self):
        profile = get_profile(self.request.user)
        return Message.objects.filter(Q(sender=profile) | Q(receiver=profile)).select_related(
            'sender', 'receiver', 'job_request'
        )

    def perform_create(self, serializer):
        serializer.save(sender=get_profile(self.request.user), is_read=False)

    def _check_sender(self, message: Message) -> None:
        if message.sender_id != get_profile(self.request.user).id:
            raise PermissionDenied('Only the sender can change this message')

    def perform_update(self, serializer):
        self._check_sender(serializer.instance)
        serializer.save()

    def perform_destroy(self, instance):
        self._check_sender(instance)
        instance.delete()

    @action(detail=False, methods=['get'])
    def conversations(self, request):
        profile = get_profile(request.user)
        summaries = group_conversations(self.get_queryset(), profile.id)
        return Response(ConversationSerializer(summaries, many=True).data)

    def _conversation_key(self, request):
        serializer = ConversationKeySerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        return serializer.validated_data['job_request_id'], serializer.validated_data['other_party_id']

    @action(detail=False, methods=['post'], url_path='mark-read')
    def mark_read(self, request):
        job_request_id, other_party_id = self._conversation_key(request)
        updated = mark_conversation_read(job_request_id, get_profile(request.user).id, other_party_id)
        return Response({'updated': updated})

    @action(detail=False, methods=['post'], url_path='delete-conversation')
    def delete_conversation(self, request):
        job_request_id, other_party_id = self._conversation_key(request)
        deleted = delete_conversation(job_request_id, get_profile(request.user).id, other_party_id)
        return Response({'deleted': deleted})


class ContractorProjectViewSet(viewsets.ModelViewSet):
    serializer_class = ContractorProjectSerializer

    def get_queryset(self):
        return ContractorProject.objects.filter(contractor__user=self.request.user).prefetch_related('images')

    def perform_create(self, serializer):
        serializer.save(contractor=get_contractor(self.request.user))

    def perform_destroy(self, instance):
        for image in instance.images.all():
            image.delete()
        instance.delete()

    @action(detail=True, methods=['post'])
    def images(self, request, pk=None):
        project = self.get_object()
        serializer = ProjectImageSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        serializer.save(project=project)
        return Response(serializer.data, status=status.HTTP_201_CREATED)

    @action(detail=True, methods=['delete'], url_path=r'images/(?P<image_id>[^/.]+)')
    def delete_image(self, request, pk=None, image_id=None):
        project = self.get_object()
        try:
            image = project.images.get(pk=image_id)
        except (ProjectImage.DoesNotExist, DjangoValidationError) as exc:
            raise NotFound('Image not found') from exc
        image.delete()
        return Response(status=status.HTTP_204_NO_CONTENT)
