from django.contrib import admin, messages
from django.db.models import QuerySet
from django.http import HttpRequest

from importer.context import get_job_context
from importer.exceptions import EnqueueFailure

from .models import (
    Collection,
    CollectionMembership,
    Metadata,
    Review,
    Seen,
    UserSummary,
)


@admin.action(description="Refresh details from the metadata provider")
def refresh_metadata(
    modeladmin: admin.ModelAdmin,
    request: HttpRequest,
    queryset: QuerySet[Metadata],
) -> None:
    catalog = get_job_context().catalog
    pks = queryset.values_list("pk", flat=True)
    try:
        for pk in pks:
            catalog.deploy_update_metadata_job(pk)
    except EnqueueFailure as exc:
        messages.add_message(request, messages.ERROR, str(exc))
        return
    messages.add_message(request, messages.INFO, "Queued %d tasks" % len(pks))


@admin.register(Metadata)
class MetadataAdmin(admin.ModelAdmin):
    list_display = ("title", "lot", "source", "identifier", "last_updated_on")
    list_filter = ("lot", "source")
    search_fields = ("title", "identifier")
    readonly_fields = ("created_on", "last_updated_on")
    actions = (refresh_metadata,)


@admin.register(Seen)
class SeenAdmin(admin.ModelAdmin):
    list_display = ("user", "metadata", "progress", "state", "finished_on")
    list_filter = ("state", "metadata__lot")
    raw_id_fields = ("user", "metadata")


@admin.register(Review)
class ReviewAdmin(admin.ModelAdmin):
    list_display = ("user", "metadata", "rating", "visibility", "posted_on")
    list_filter = ("visibility", "metadata__lot")
    raw_id_fields = ("user", "metadata")


class CollectionMembershipInline(admin.TabularInline):
    model = CollectionMembership
    raw_id_fields = ("metadata",)
    extra = 0


@admin.register(Collection)
class CollectionAdmin(admin.ModelAdmin):
    list_display = ("name", "user", "visibility", "last_updated_on")
    list_filter = ("visibility",)
    search_fields = ("name", "user__username")
    raw_id_fields = ("user",)
    inlines = (CollectionMembershipInline,)


@admin.register(UserSummary)
class UserSummaryAdmin(admin.ModelAdmin):
    list_display = ("user", "calculated_on")
    readonly_fields = ("user", "data", "calculated_on")
