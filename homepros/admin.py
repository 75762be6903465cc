from django.contrib import admin

from .models import (
    Availability,
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


@admin.register(Profile)
class ProfileAdmin(admin.ModelAdmin):
    list_display = ('full_name', 'email', 'user_type')
    list_filter = ('user_type',)
    search_fields = ('full_name', 'email', 'user__username')


class ContractorServiceInline(admin.TabularInline):
    model = ContractorService
    extra = 1


class AvailabilityInline(admin.TabularInline):
    model = Availability
    extra = 0


@admin.register(ContractorProfile)
class ContractorProfileAdmin(admin.ModelAdmin):
    list_display = ('business_name', 'city', 'state', 'status', 'avg_rating', 'total_reviews', 'total_jobs')
    list_filter = ('status', 'state', 'insurance_verified')
    search_fields = ('business_name', 'user__username', 'city')
    readonly_fields = ('avg_rating', 'total_reviews', 'total_jobs')
    inlines = [ContractorServiceInline, AvailabilityInline]
    actions = ['approve', 'suspend', 'recalculate_ratings']

    @admin.action(description='Approve selected contractors')
    def approve(self, request, queryset):
        updated = queryset.update(status=ContractorProfile.STATUS_APPROVED)
        self.message_user(request, f'{updated} contractors approved.')

    @admin.action(description='Suspend selected contractors')
    def suspend(self, request, queryset):
        updated = queryset.update(status=ContractorProfile.STATUS_SUSPENDED)
        self.message_user(request, f'{updated} contractors suspended.')

    @admin.action(description='Recalculate rating aggregates')
    def recalculate_ratings(self, request, queryset):
        for contractor in queryset:
            contractor.recalc_ratings()


@admin.register(ServiceCategory)
class ServiceCategoryAdmin(admin.ModelAdmin):
    list_display = ('name',)
    search_fields = ('name',)


class QuoteInline(admin.TabularInline):
    model = Quote
    extra = 0


@admin.register(JobRequest)
class JobRequestAdmin(admin.ModelAdmin):
    list_display = ('title', 'customer', 'category', 'urgency', 'status', 'created_at')
    list_filter = ('status', 'urgency', 'category')
    search_fields = ('title', 'customer__full_name')
    inlines = [QuoteInline]


@admin.register(Quote)
class QuoteAdmin(admin.ModelAdmin):
    list_display = ('job_request', 'contractor', 'quoted_price', 'status', 'created_at')
    list_filter = ('status',)


@admin.register(Booking)
class BookingAdmin(admin.ModelAdmin):
    list_display = ('job_request', 'customer', 'contractor', 'scheduled_date', 'status')
    list_filter = ('status',)
    search_fields = ('customer__full_name', 'contractor__business_name')


@admin.register(Review)
class ReviewAdmin(admin.ModelAdmin):
    list_display = ('contractor', 'customer', 'rating', 'booking', 'created_at')
    list_filter = ('rating',)


@admin.register(Message)
class MessageAdmin(admin.ModelAdmin):
    list_display = ('job_request', 'sender', 'receiver', 'is_read', 'created_at')
    list_filter = ('is_read',)


class ProjectImageInline(admin.TabularInline):
    model = ProjectImage
    extra = 0


@admin.register(ContractorProject)
class ContractorProjectAdmin(admin.ModelAdmin):
    list_display = ('title', 'contractor', 'category', 'completion_date')
    inlines = [ProjectImageInline]
