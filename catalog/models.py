"""
The shared media catalog and the per-user activity recorded against it.

Catalog entries (``Metadata``) are shared between users and deduplicated on
``(lot, source, identifier)``; everything else is owned by a user.
"""

from django.conf import settings
from django.core.serializers.json import DjangoJSONEncoder
from django.core.validators import MaxValueValidator, MinValueValidator
from django.db import models
from django.utils import timezone


class MediaLot(models.TextChoices):
    AUDIO_BOOK = "audio_book", "Audio book"
    ANIME = "anime", "Anime"
    BOOK = "book", "Book"
    PODCAST = "podcast", "Podcast"
    MANGA = "manga", "Manga"
    MOVIE = "movie", "Movie"
    SHOW = "show", "Show"
    VIDEO_GAME = "video_game", "Video game"
    VISUAL_NOVEL = "visual_novel", "Visual novel"


class MediaSource(models.TextChoices):
    ANILIST = "anilist", "AniList"
    AUDIBLE = "audible", "Audible"
    CUSTOM = "custom", "Custom"
    GOODREADS = "goodreads", "Goodreads"
    IGDB = "igdb", "IGDB"
    ITUNES = "itunes", "iTunes"
    LISTENNOTES = "listennotes", "Listen Notes"
    OPENLIBRARY = "openlibrary", "Open Library"
    TMDB = "tmdb", "TMDB"


class Visibility(models.TextChoices):
    PUBLIC = "public", "Public"
    PRIVATE = "private", "Private"


class Metadata(models.Model):
    """
    Canonical, deduplicated record of one piece of media
    """

    lot = models.CharField(max_length=20, choices=MediaLot.choices)
    source = models.CharField(max_length=20, choices=MediaSource.choices)
    identifier = models.CharField(
        max_length=255, help_text="Identifier of the media at its source"
    )
    title = models.CharField(max_length=500)
    description = models.TextField(blank=True, default="")
    publish_year = models.PositiveIntegerField(null=True, blank=True)
    images = models.JSONField(default=list, blank=True)
    creators = models.JSONField(default=list, blank=True)
    specifics = models.JSONField(
        help_text="Lot specific details such as seasons, episodes or page counts",
        encoder=DjangoJSONEncoder,
        default=dict,
        blank=True,
    )
    created_on = models.DateTimeField(auto_now_add=True)
    last_updated_on = models.DateTimeField(auto_now=True)

    class Meta:
        verbose_name_plural = "metadata"
        constraints = [
            models.UniqueConstraint(
                fields=["lot", "source", "identifier"],
                name="unique_metadata_per_source",
            )
        ]

    def __str__(self):
        return "Metadata(lot=%s, source=%s, identifier=%s)" % (
            self.lot,
            self.source,
            self.identifier,
        )


class Seen(models.Model):
    """
    One viewing, reading or listening of a catalog entry by a user
    """

    class State(models.TextChoices):
        IN_PROGRESS = "in_progress", "In progress"
        COMPLETED = "completed", "Completed"

    user = models.ForeignKey(settings.AUTH_USER_MODEL, on_delete=models.CASCADE)
    metadata = models.ForeignKey(Metadata, on_delete=models.CASCADE)
    progress = models.PositiveSmallIntegerField(
        default=0, validators=[MinValueValidator(0), MaxValueValidator(100)]
    )
    state = models.CharField(
        max_length=20, choices=State.choices, default=State.IN_PROGRESS
    )
    started_on = models.DateField(null=True, blank=True)
    finished_on = models.DateField(null=True, blank=True)
    last_updated_on = models.DateTimeField(auto_now=True)
    show_season_number = models.PositiveIntegerField(null=True, blank=True)
    show_episode_number = models.PositiveIntegerField(null=True, blank=True)
    podcast_episode_number = models.PositiveIntegerField(null=True, blank=True)

    class Meta:
        verbose_name_plural = "seen"

    def __str__(self):
        return "Seen(user=%s, metadata=%s, progress=%s)" % (
            self.user_id,
            self.metadata_id,
            self.progress,
        )


class Review(models.Model):
    """
    A rating and/or written review of a catalog entry. Ratings are stored on a
    0-100 scale regardless of the scale used by the source they came from.
    """

    user = models.ForeignKey(settings.AUTH_USER_MODEL, on_delete=models.CASCADE)
    metadata = models.ForeignKey(Metadata, on_delete=models.CASCADE)
    rating = models.DecimalField(
        max_digits=5,
        decimal_places=2,
        null=True,
        blank=True,
        validators=[MinValueValidator(0), MaxValueValidator(100)],
    )
    text = models.TextField(blank=True, default="")
    spoiler = models.BooleanField(default=False)
    visibility = models.CharField(
        max_length=10, choices=Visibility.choices, default=Visibility.PRIVATE
    )
    posted_on = models.DateTimeField(default=timezone.now)
    show_season_number = models.PositiveIntegerField(null=True, blank=True)
    show_episode_number = models.PositiveIntegerField(null=True, blank=True)
    podcast_episode_number = models.PositiveIntegerField(null=True, blank=True)

    def __str__(self):
        return "Review(user=%s, metadata=%s, rating=%s)" % (
            self.user_id,
            self.metadata_id,
            self.rating,
        )


class Collection(models.Model):
    user = models.ForeignKey(
        settings.AUTH_USER_MODEL, on_delete=models.CASCADE, related_name="collections"
    )
    name = models.CharField(max_length=255)
    description = models.TextField(blank=True, default="")
    visibility = models.CharField(
        max_length=10, choices=Visibility.choices, default=Visibility.PRIVATE
    )
    created_on = models.DateTimeField(auto_now_add=True)
    last_updated_on = models.DateTimeField(auto_now=True)
    media = models.ManyToManyField(
        Metadata, through="CollectionMembership", related_name="collections"
    )

    class Meta:
        constraints = [
            models.UniqueConstraint(
                fields=["user", "name"], name="unique_collection_name_per_user"
            )
        ]

    def __str__(self):
        return "Collection(user=%s, name=%s)" % (self.user_id, self.name)


class CollectionMembership(models.Model):
    collection = models.ForeignKey(Collection, on_delete=models.CASCADE)
    metadata = models.ForeignKey(Metadata, on_delete=models.CASCADE)
    added_on = models.DateTimeField(auto_now_add=True)

    class Meta:
        constraints = [
            models.UniqueConstraint(
                fields=["collection", "metadata"], name="unique_collection_membership"
            )
        ]


class UserSummary(models.Model):
    """
    Pre-computed statistics about a user's activity, rebuilt in the background
    """

    user = models.OneToOneField(
        settings.AUTH_USER_MODEL, on_delete=models.CASCADE, related_name="summary"
    )
    data = models.JSONField(encoder=DjangoJSONEncoder, default=dict)
    calculated_on = models.DateTimeField(default=timezone.now)

    class Meta:
        verbose_name_plural = "user summaries"

    def __str__(self):
        return "UserSummary(user=%s)" % self.user_id
