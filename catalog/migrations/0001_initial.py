import django.core.serializers.json
import django.core.validators
import django.db.models.deletion
import django.utils.timezone
from django.conf import settings
from django.db import migrations, models


class Migration(migrations.Migration):

    initial = True

    dependencies = [
        migrations.swappable_dependency(settings.AUTH_USER_MODEL),
    ]

    operations = [
        migrations.CreateModel(
            name="Metadata",
            fields=[
                (
                    "id",
                    models.AutoField(
                        auto_created=True,
                        primary_key=True,
                        serialize=False,
                        verbose_name="ID",
                    ),
                ),
                (
                    "lot",
                    models.CharField(
                        choices=[
                            ("audio_book", "Audio book"),
                            ("anime", "Anime"),
                            ("book", "Book"),
                            ("podcast", "Podcast"),
                            ("manga", "Manga"),
                            ("movie", "Movie"),
                            ("show", "Show"),
                            ("video_game", "Video game"),
                            ("visual_novel", "Visual novel"),
                        ],
                        max_length=20,
                    ),
                ),
                (
                    "source",
                    models.CharField(
                        choices=[
                            ("anilist", "AniList"),
                            ("audible", "Audible"),
                            ("custom", "Custom"),
                            ("goodreads", "Goodreads"),
                            ("igdb", "IGDB"),
                            ("itunes", "iTunes"),
                            ("listennotes", "Listen Notes"),
                            ("openlibrary", "Open Library"),
                            ("tmdb", "TMDB"),
                        ],
                        max_length=20,
                    ),
                ),
                (
                    "identifier",
                    models.CharField(
                        help_text="Identifier of the media at its source",
                        max_length=255,
                    ),
                ),
                ("title", models.CharField(max_length=500)),
                ("description", models.TextField(blank=True, default="")),
                ("publish_year", models.PositiveIntegerField(blank=True, null=True)),
                ("images", models.JSONField(blank=True, default=list)),
                ("creators", models.JSONField(blank=True, default=list)),
                (
                    "specifics",
                    models.JSONField(
                        blank=True,
                        default=dict,
                        encoder=django.core.serializers.json.DjangoJSONEncoder,
                        help_text=(
                            "Lot specific details such as seasons, episodes or "
                            "page counts"
                        ),
                    ),
                ),
                ("created_on", models.DateTimeField(auto_now_add=True)),
                ("last_updated_on", models.DateTimeField(auto_now=True)),
            ],
            options={
                "verbose_name_plural": "metadata",
            },
        ),
        migrations.CreateModel(
            name="Collection",
            fields=[
                (
                    "id",
                    models.AutoField(
                        auto_created=True,
                        primary_key=True,
                        serialize=False,
                        verbose_name="ID",
                    ),
                ),
                ("name", models.CharField(max_length=255)),
                ("description", models.TextField(blank=True, default="")),
                (
                    "visibility",
                    models.CharField(
                        choices=[("public", "Public"), ("private", "Private")],
                        default="private",
                        max_length=10,
                    ),
                ),
                ("created_on", models.DateTimeField(auto_now_add=True)),
                ("last_updated_on", models.DateTimeField(auto_now=True)),
                (
                    "user",
                    models.ForeignKey(
                        on_delete=django.db.models.deletion.CASCADE,
                        related_name="collections",
                        to=settings.AUTH_USER_MODEL,
                    ),
                ),
            ],
        ),
        migrations.CreateModel(
            name="CollectionMembership",
            fields=[
                (
                    "id",
                    models.AutoField(
                        auto_created=True,
                        primary_key=True,
                        serialize=False,
                        verbose_name="ID",
                    ),
                ),
                ("added_on", models.DateTimeField(auto_now_add=True)),
                (
                    "collection",
                    models.ForeignKey(
                        on_delete=django.db.models.deletion.CASCADE,
                        to="catalog.collection",
                    ),
                ),
                (
                    "metadata",
                    models.ForeignKey(
                        on_delete=django.db.models.deletion.CASCADE,
                        to="catalog.metadata",
                    ),
                ),
            ],
        ),
        migrations.AddField(
            model_name="collection",
            name="media",
            field=models.ManyToManyField(
                related_name="collections",
                through="catalog.CollectionMembership",
                to="catalog.metadata",
            ),
        ),
        migrations.CreateModel(
            name="Review",
            fields=[
                (
                    "id",
                    models.AutoField(
                        auto_created=True,
                        primary_key=True,
                        serialize=False,
                        verbose_name="ID",
                    ),
                ),
                (
                    "rating",
                    models.DecimalField(
                        blank=True,
                        decimal_places=2,
                        max_digits=5,
                        null=True,
                        validators=[
                            django.core.validators.MinValueValidator(0),
                            django.core.validators.MaxValueValidator(100),
                        ],
                    ),
                ),
                ("text", models.TextField(blank=True, default="")),
                ("spoiler", models.BooleanField(default=False)),
                (
                    "visibility",
                    models.CharField(
                        choices=[("public", "Public"), ("private", "Private")],
                        default="private",
                        max_length=10,
                    ),
                ),
                (
                    "posted_on",
                    models.DateTimeField(default=django.utils.timezone.now),
                ),
                (
                    "show_season_number",
                    models.PositiveIntegerField(blank=True, null=True),
                ),
                (
                    "show_episode_number",
                    models.PositiveIntegerField(blank=True, null=True),
                ),
                (
                    "podcast_episode_number",
                    models.PositiveIntegerField(blank=True, null=True),
                ),
                (
                    "metadata",
                    models.ForeignKey(
                        on_delete=django.db.models.deletion.CASCADE,
                        to="catalog.metadata",
                    ),
                ),
                (
                    "user",
                    models.ForeignKey(
                        on_delete=django.db.models.deletion.CASCADE,
                        to=settings.AUTH_USER_MODEL,
                    ),
                ),
            ],
        ),
        migrations.CreateModel(
            name="Seen",
            fields=[
                (
                    "id",
                    models.AutoField(
                        auto_created=True,
                        primary_key=True,
                        serialize=False,
                        verbose_name="ID",
                    ),
                ),
                (
                    "progress",
                    models.PositiveSmallIntegerField(
                        default=0,
                        validators=[
                            django.core.validators.MinValueValidator(0),
                            django.core.validators.MaxValueValidator(100),
                        ],
                    ),
                ),
                (
                    "state",
                    models.CharField(
                        choices=[
                            ("in_progress", "In progress"),
                            ("completed", "Completed"),
                        ],
                        default="in_progress",
                        max_length=20,
                    ),
                ),
                ("started_on", models.DateField(blank=True, null=True)),
                ("finished_on", models.DateField(blank=True, null=True)),
                ("last_updated_on", models.DateTimeField(auto_now=True)),
                (
                    "show_season_number",
                    models.PositiveIntegerField(blank=True, null=True),
                ),
                (
                    "show_episode_number",
                    models.PositiveIntegerField(blank=True, null=True),
                ),
                (
                    "podcast_episode_number",
                    models.PositiveIntegerField(blank=True, null=True),
                ),
                (
                    "metadata",
                    models.ForeignKey(
                        on_delete=django.db.models.deletion.CASCADE,
                        to="catalog.metadata",
                    ),
                ),
                (
                    "user",
                    models.ForeignKey(
                        on_delete=django.db.models.deletion.CASCADE,
                        to=settings.AUTH_USER_MODEL,
                    ),
                ),
            ],
            options={
                "verbose_name_plural": "seen",
            },
        ),
        migrations.CreateModel(
            name="UserSummary",
            fields=[
                (
                    "id",
                    models.AutoField(
                        auto_created=True,
                        primary_key=True,
                        serialize=False,
                        verbose_name="ID",
                    ),
                ),
                (
                    "data",
                    models.JSONField(
                        default=dict,
                        encoder=django.core.serializers.json.DjangoJSONEncoder,
                    ),
                ),
                (
                    "calculated_on",
                    models.DateTimeField(default=django.utils.timezone.now),
                ),
                (
                    "user",
                    models.OneToOneField(
                        on_delete=django.db.models.deletion.CASCADE,
                        related_name="summary",
                        to=settings.AUTH_USER_MODEL,
                    ),
                ),
            ],
            options={
                "verbose_name_plural": "user summaries",
            },
        ),
        migrations.AddConstraint(
            model_name="metadata",
            constraint=models.UniqueConstraint(
                fields=("lot", "source", "identifier"),
                name="unique_metadata_per_source",
            ),
        ),
        migrations.AddConstraint(
            model_name="collection",
            constraint=models.UniqueConstraint(
                fields=("user", "name"), name="unique_collection_name_per_user"
            ),
        ),
        migrations.AddConstraint(
            model_name="collectionmembership",
            constraint=models.UniqueConstraint(
                fields=("collection", "metadata"), name="unique_collection_membership"
            ),
        ),
    ]
