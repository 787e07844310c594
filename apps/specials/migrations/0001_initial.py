import uuid

import django.core.validators
import django.db.models.deletion
import django.utils.timezone
from django.conf import settings
from django.db import migrations, models


class Migration(migrations.Migration):

    initial = True

    dependencies = [
        ('directory', '0001_initial'),
        migrations.swappable_dependency(settings.AUTH_USER_MODEL),
    ]

    operations = [
        migrations.CreateModel(
            name='Special',
            fields=[
                ('id', models.UUIDField(default=uuid.uuid4, editable=False, primary_key=True, serialize=False)),
                ('title', models.CharField(max_length=200)),
                ('subtitle', models.CharField(blank=True, max_length=200)),
                ('description', models.TextField(blank=True)),
                ('discount_type', models.CharField(choices=[('percentage', 'Percentage'), ('fixed_amount', 'Fixed Amount'), ('bogo', 'Buy One Get One'), ('free_item', 'Free Item'), ('other', 'Other')], default='other', max_length=20)),
                ('discount_value', models.DecimalField(blank=True, decimal_places=2, max_digits=10, null=True)),
                ('discount_label', models.CharField(blank=True, max_length=100)),
                ('valid_from', models.DateTimeField()),
                ('valid_until', models.DateTimeField()),
                ('max_claims_total', models.PositiveIntegerField(blank=True, null=True, validators=[django.core.validators.MinValueValidator(1)])),
                ('per_visit', models.BooleanField(default=False)),
                ('priority', models.IntegerField(default=0)),
                ('requires_code', models.BooleanField(default=False)),
                ('code_hint', models.CharField(blank=True, max_length=200)),
                ('terms', models.TextField(blank=True)),
                ('hero_image_url', models.URLField(blank=True)),
                ('is_active', models.BooleanField(default=True)),
                ('created_at', models.DateTimeField(auto_now_add=True)),
                ('updated_at', models.DateTimeField(auto_now=True)),
                ('business', models.ForeignKey(on_delete=django.db.models.deletion.CASCADE, related_name='specials', to='directory.business')),
            ],
            options={
                'db_table': 'specials',
                'ordering': ['-priority', 'valid_until'],
                'indexes': [
                    models.Index(fields=['is_active', 'valid_from', 'valid_until'], name='specials_active_window_idx'),
                    models.Index(fields=['business', 'is_active'], name='specials_business_idx'),
                    models.Index(fields=['priority'], name='specials_priority_idx'),
                ],
                'constraints': [
                    models.CheckConstraint(condition=models.Q(('valid_from__lte', models.F('valid_until'))), name='ck_special_valid_window'),
                ],
            },
        ),
        migrations.CreateModel(
            name='SpecialMedia',
            fields=[
                ('id', models.UUIDField(default=uuid.uuid4, editable=False, primary_key=True, serialize=False)),
                ('url', models.URLField()),
                ('alt_text', models.CharField(blank=True, max_length=200)),
                ('position', models.PositiveIntegerField(default=0)),
                ('special', models.ForeignKey(on_delete=django.db.models.deletion.CASCADE, related_name='media', to='specials.special')),
            ],
            options={
                'db_table': 'special_media',
                'ordering': ['position'],
            },
        ),
        migrations.CreateModel(
            name='SpecialClaim',
            fields=[
                ('id', models.UUIDField(default=uuid.uuid4, editable=False, primary_key=True, serialize=False)),
                ('guest_session_id', models.CharField(blank=True, max_length=128, null=True)),
                ('status', models.CharField(choices=[('claimed', 'Claimed'), ('redeemed', 'Redeemed'), ('cancelled', 'Cancelled')], default='claimed', max_length=20)),
                ('claimed_at', models.DateTimeField(default=django.utils.timezone.now, editable=False)),
                ('status_changed_at', models.DateTimeField(default=django.utils.timezone.now)),
                ('ip_address', models.GenericIPAddressField(blank=True, null=True)),
                ('user_agent', models.CharField(blank=True, max_length=500)),
                ('idempotency_key', models.CharField(blank=True, max_length=128, null=True)),
                ('special', models.ForeignKey(on_delete=django.db.models.deletion.CASCADE, related_name='claims', to='specials.special')),
                ('user', models.ForeignKey(blank=True, null=True, on_delete=django.db.models.deletion.CASCADE, related_name='special_claims', to=settings.AUTH_USER_MODEL)),
            ],
            options={
                'db_table': 'special_claims',
                'ordering': ['-claimed_at'],
                'indexes': [
                    models.Index(fields=['special', 'status'], name='special_claims_status_idx'),
                    models.Index(fields=['special', 'user'], name='special_claims_user_idx'),
                    models.Index(fields=['special', 'guest_session_id'], name='special_claims_guest_idx'),
                ],
                'constraints': [
                    models.CheckConstraint(condition=models.Q(models.Q(('guest_session_id__isnull', True), ('user__isnull', False)), models.Q(('guest_session_id__isnull', False), ('user__isnull', True)), _connector='OR'), name='ck_special_claim_one_claimant'),
                    models.UniqueConstraint(condition=models.Q(('idempotency_key__isnull', False)), fields=('special', 'idempotency_key'), name='uq_special_claim_idempotency_key'),
                ],
            },
        ),
        migrations.CreateModel(
            name='SpecialEvent',
            fields=[
                ('id', models.UUIDField(default=uuid.uuid4, editable=False, primary_key=True, serialize=False)),
                ('guest_session_id', models.CharField(blank=True, max_length=128, null=True)),
                ('event_type', models.CharField(choices=[('view', 'View'), ('share', 'Share'), ('click', 'Click'), ('claim', 'Claim')], max_length=20)),
                ('occurred_at', models.DateTimeField(default=django.utils.timezone.now)),
                ('ip_address', models.GenericIPAddressField(blank=True, null=True)),
                ('user_agent', models.CharField(blank=True, max_length=500)),
                ('special', models.ForeignKey(on_delete=django.db.models.deletion.CASCADE, related_name='events', to='specials.special')),
                ('user', models.ForeignKey(blank=True, null=True, on_delete=django.db.models.deletion.SET_NULL, related_name='special_events', to=settings.AUTH_USER_MODEL)),
            ],
            options={
                'db_table': 'special_events',
                'ordering': ['-occurred_at'],
                'indexes': [
                    models.Index(fields=['special', 'event_type'], name='special_events_type_idx'),
                    models.Index(fields=['occurred_at'], name='special_events_time_idx'),
                ],
            },
        ),
    ]
