from django.urls import include, path
from rest_framework.routers import DefaultRouter

from .views import (
    AvailableJobsView,
    BookingViewSet,
    ContractorProjectViewSet,
    ContractorServiceViewSet,
    ContractorSetupView,
    ContractorStatsView,
    ContractorViewSet,
    JobRequestViewSet,
    MessageViewSet,
    MeView,
    OnboardingView,
    QuoteViewSet,
    ReviewViewSet,
)

router = DefaultRouter()
router.register(r'contractors', ContractorViewSet, basename='contractor')
router.register(r'contractor/services', ContractorServiceViewSet, basename='contractor-service')
router.register(r'contractor/projects', ContractorProjectViewSet, basename='contractor-project')
router.register(r'job-requests', JobRequestViewSet, basename='job-request')
router.register(r'quotes', QuoteViewSet, basename='quote')
router.register(r'bookings', BookingViewSet, basename='booking')
router.register(r'reviews', ReviewViewSet, basename='review')
router.register(r'messages', MessageViewSet, basename='message')

urlpatterns = [
    path('me/', MeView.as_view(), name='me'),
    path('onboarding/', OnboardingView.as_view(), name='onboarding'),
    path('contractor/setup/', ContractorSetupView.as_view(), name='contractor-setup'),
    path('contractor/stats/', ContractorStatsView.as_view(), name='contractor-stats'),
    path('jobs/', AvailableJobsView.as_view(), name='available-jobs'),
    path('', include(router.urls)),
]
