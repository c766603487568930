from django.contrib import admin, messages
from django.contrib.humanize.templatetags.humanize import naturaltime
from django.db.models import QuerySet
from django.http import HttpRequest

from importer.context import get_job_context
from importer.exceptions import EnqueueFailure

from .models import JobRecord, MediaImportReport


class NullableTimestampFilter(admin.SimpleListFilter):
    """
    Base class for Admin list filters which define whether a datetime field has
    a value or is null
    """

    title = ""
    parameter_name = ""
    lookup_labels = ("NULL", "NOT NULL")

    def lookups(self, request, model_admin):
        return zip(("null", "not-null"), self.lookup_labels, strict=False)

    def queryset(self, request, queryset):
        kwargs = {"%s__isnull" % self.parameter_name: True}
        if self.value() == "null":
            return queryset.filter(**kwargs)
        elif self.value() == "not-null":
            return queryset.exclude(**kwargs)
        return queryset


class LastStartedFilter(NullableTimestampFilter):
    title = "Last Started"
    parameter_name = "last_started"
    lookup_labels = ("Unstarted", "Started")


class CompletedFilter(NullableTimestampFilter):
    title = "Completed"
    parameter_name = "completed"
    lookup_labels = ("Incomplete", "Completed")


class FailedFilter(NullableTimestampFilter):
    title = "Failed"
    parameter_name = "failed"
    lookup_labels = ("Has not failed", "Has failed")


class FinishedFilter(NullableTimestampFilter):
    title = "Finished"
    parameter_name = "finished_on"
    lookup_labels = ("Running", "Finished")


def natural_timestamp(field_name: str):
    """
    Build a list_display callable rendering a timestamp field with
    ``naturaltime`` ("3 minutes ago")
    """

    def inner(obj):
        value = getattr(obj, field_name, None)
        if value:
            return naturaltime(value)
        return value

    inner.short_description = field_name.replace("_", " ").title()
    inner.admin_order_field = field_name
    return inner


@admin.action(description="Mark stale reports as failed")
def invalidate_stale_reports(
    modeladmin: admin.ModelAdmin,
    request: HttpRequest,
    queryset: QuerySet[MediaImportReport],
) -> None:
    count = get_job_context().importer.invalidate_stale_reports()
    messages.add_message(
        request, messages.INFO, "Marked %d stale reports as failed" % count
    )


@admin.register(MediaImportReport)
class MediaImportReportAdmin(admin.ModelAdmin):
    list_display = (
        "id",
        "user",
        "source",
        natural_timestamp("started_on"),
        natural_timestamp("finished_on"),
        "success",
    )
    list_filter = ("source", "success", FinishedFilter)
    readonly_fields = (
        "user",
        "source",
        "started_on",
        "finished_on",
        "success",
        "details",
    )
    search_fields = ("user__username",)
    actions = (invalidate_stale_reports,)

    def has_add_permission(self, request):
        return False


@admin.action(description="Queue the job again")
def requeue_job(
    modeladmin: admin.ModelAdmin,
    request: HttpRequest,
    queryset: QuerySet[JobRecord],
) -> None:
    queue = get_job_context().queue
    queued = 0
    for name, payload in queryset.values_list("name", "payload"):
        try:
            queue.send(name, payload)
        except EnqueueFailure:
            continue
        queued += 1
    messages.add_message(request, messages.INFO, "Queued %d jobs" % queued)


@admin.register(JobRecord)
class JobRecordAdmin(admin.ModelAdmin):
    readonly_fields = (
        "name",
        "payload",
        "created",
        "modified",
        "last_started",
        "completed",
        "failed",
        "status",
        "task_id",
    )
    list_display = (
        "name",
        natural_timestamp("created"),
        natural_timestamp("last_started"),
        natural_timestamp("completed"),
        natural_timestamp("failed"),
        "status",
    )
    list_filter = ("name", LastStartedFilter, CompletedFilter, FailedFilter)
    search_fields = ("name", "status", "task_id")
    actions = (requeue_job,)
