import django.db.models.deletion
from django.conf import settings
from django.db import migrations, models


STATUS_CHOICES = [
    ('pending', 'Pending'),
    ('assigned', 'Assigned'),
    ('in-progress', 'In Progress'),
    ('cancelled', 'Cancelled'),
    ('answered', 'Answered'),
    ('approved', 'Approved'),
    ('rejected', 'Rejected'),
    ('completed', 'Completed'),
    ('resolved', 'Resolved'),
    ('unresolved', 'Unresolved'),
]


class Migration(migrations.Migration):

    initial = True

    dependencies = [
        migrations.swappable_dependency(settings.AUTH_USER_MODEL),
    ]

    operations = [
        migrations.CreateModel(
            name='Case',
            fields=[
                ('id', models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name='ID')),
                ('created_at', models.DateTimeField(auto_now_add=True, verbose_name='Created At')),
                ('updated_at', models.DateTimeField(auto_now=True, verbose_name='Updated At')),
                ('case_type', models.CharField(choices=[('fatwa', 'Fatwa'), ('marriage', 'Marriage'), ('reconciliation', 'Reconciliation')], db_index=True, editable=False, max_length=20, verbose_name='Case Type')),
                ('status', models.CharField(choices=STATUS_CHOICES, db_index=True, default='pending', max_length=20, verbose_name='Current Status')),
                ('priority', models.CharField(choices=[('low', 'Low'), ('medium', 'Medium'), ('high', 'High')], default='medium', max_length=10, verbose_name='Priority')),
                ('admin_notes', models.TextField(blank=True, default='', verbose_name='Admin Notes')),
                ('cancellation_reason', models.TextField(blank=True, default='', verbose_name='Cancellation Reason')),
                ('owner', models.ForeignKey(on_delete=django.db.models.deletion.CASCADE, related_name='owned_cases', to=settings.AUTH_USER_MODEL, verbose_name='Requested By')),
            ],
            options={
                'verbose_name': 'Case',
                'verbose_name_plural': 'Cases',
                'ordering': ['-created_at'],
            },
        ),
        migrations.CreateModel(
            name='CaseAssignment',
            fields=[
                ('id', models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name='ID')),
                ('created_at', models.DateTimeField(auto_now_add=True, verbose_name='Created At')),
                ('updated_at', models.DateTimeField(auto_now=True, verbose_name='Updated At')),
                ('assigned_by', models.ForeignKey(blank=True, null=True, on_delete=django.db.models.deletion.SET_NULL, related_name='case_assignments_made', to=settings.AUTH_USER_MODEL, verbose_name='Assigned By')),
                ('case', models.ForeignKey(on_delete=django.db.models.deletion.CASCADE, related_name='assignments', to='cases.case', verbose_name='Case')),
                ('shaykh', models.ForeignKey(on_delete=django.db.models.deletion.CASCADE, related_name='case_assignments', to=settings.AUTH_USER_MODEL, verbose_name='Shaykh')),
            ],
            options={
                'verbose_name': 'Case Assignment',
                'verbose_name_plural': 'Case Assignments',
                'ordering': ['created_at', 'id'],
                'unique_together': {('case', 'shaykh')},
            },
        ),
        migrations.AddField(
            model_name='case',
            name='assignees',
            field=models.ManyToManyField(blank=True, related_name='assigned_cases', through='cases.CaseAssignment', through_fields=('case', 'shaykh'), to=settings.AUTH_USER_MODEL, verbose_name='Assigned Shaykhs'),
        ),
        migrations.AddIndex(
            model_name='case',
            index=models.Index(fields=['case_type', 'status'], name='case_type_status_idx'),
        ),
        migrations.CreateModel(
            name='Meeting',
            fields=[
                ('id', models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name='ID')),
                ('created_at', models.DateTimeField(auto_now_add=True, verbose_name='Created At')),
                ('updated_at', models.DateTimeField(auto_now=True, verbose_name='Updated At')),
                ('date', models.DateField(verbose_name='Date')),
                ('time', models.TimeField(verbose_name='Time')),
                ('location', models.CharField(max_length=255, verbose_name='Location')),
                ('notes', models.TextField(blank=True, default='', verbose_name='Notes')),
                ('status', models.CharField(choices=[('scheduled', 'Scheduled'), ('completed', 'Completed'), ('cancelled', 'Cancelled'), ('rescheduled', 'Rescheduled')], db_index=True, default='scheduled', max_length=15, verbose_name='Status')),
                ('completed_notes', models.TextField(blank=True, default='', verbose_name='Completion Notes')),
                ('case', models.ForeignKey(on_delete=django.db.models.deletion.CASCADE, related_name='meetings', to='cases.case', verbose_name='Case')),
                ('scheduled_by', models.ForeignKey(blank=True, null=True, on_delete=django.db.models.deletion.SET_NULL, related_name='scheduled_meetings', to=settings.AUTH_USER_MODEL, verbose_name='Scheduled By')),
            ],
            options={
                'verbose_name': 'Meeting',
                'verbose_name_plural': 'Meetings',
                'ordering': ['date', 'time', 'id'],
            },
        ),
        migrations.CreateModel(
            name='Feedback',
            fields=[
                ('id', models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name='ID')),
                ('created_at', models.DateTimeField(auto_now_add=True, verbose_name='Created At')),
                ('updated_at', models.DateTimeField(auto_now=True, verbose_name='Updated At')),
                ('comment', models.TextField(verbose_name='Comment')),
                ('author', models.ForeignKey(blank=True, null=True, on_delete=django.db.models.deletion.SET_NULL, related_name='case_feedback', to=settings.AUTH_USER_MODEL, verbose_name='Author')),
                ('case', models.ForeignKey(on_delete=django.db.models.deletion.CASCADE, related_name='feedback_entries', to='cases.case', verbose_name='Case')),
            ],
            options={
                'verbose_name': 'Feedback',
                'verbose_name_plural': 'Feedback',
                'ordering': ['created_at', 'id'],
            },
        ),
        migrations.CreateModel(
            name='CaseStatusLog',
            fields=[
                ('id', models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name='ID')),
                ('created_at', models.DateTimeField(auto_now_add=True, verbose_name='Created At')),
                ('updated_at', models.DateTimeField(auto_now=True, verbose_name='Updated At')),
                ('from_status', models.CharField(choices=STATUS_CHOICES, max_length=20, verbose_name='Previous Status')),
                ('to_status', models.CharField(choices=STATUS_CHOICES, max_length=20, verbose_name='New Status')),
                ('message', models.TextField(blank=True, default='', verbose_name='Message')),
                ('case', models.ForeignKey(on_delete=django.db.models.deletion.CASCADE, related_name='status_logs', to='cases.case', verbose_name='Case')),
                ('changed_by', models.ForeignKey(null=True, on_delete=django.db.models.deletion.SET_NULL, related_name='case_status_changes', to=settings.AUTH_USER_MODEL, verbose_name='Changed By')),
            ],
            options={
                'verbose_name': 'Case Status Log',
                'verbose_name_plural': 'Case Status Logs',
                'ordering': ['-created_at', '-id'],
            },
        ),
        migrations.CreateModel(
            name='CaseParty',
            fields=[
                ('id', models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name='ID')),
                ('created_at', models.DateTimeField(auto_now_add=True, verbose_name='Created At')),
                ('updated_at', models.DateTimeField(auto_now=True, verbose_name='Updated At')),
                ('role', models.CharField(choices=[('partner_one', 'Partner One'), ('partner_two', 'Partner Two'), ('husband', 'Husband'), ('wife', 'Wife')], max_length=15, verbose_name='Role')),
                ('first_name', models.CharField(max_length=150, verbose_name='First Name')),
                ('last_name', models.CharField(max_length=150, verbose_name='Last Name')),
                ('phone', models.CharField(blank=True, default='', max_length=30, verbose_name='Phone')),
                ('email', models.EmailField(blank=True, default='', max_length=254, verbose_name='Email')),
                ('address', models.CharField(blank=True, default='', max_length=255, verbose_name='Address')),
                ('date_of_birth', models.DateField(blank=True, null=True, verbose_name='Date of Birth')),
                ('case', models.ForeignKey(on_delete=django.db.models.deletion.CASCADE, related_name='parties', to='cases.case', verbose_name='Case')),
            ],
            options={
                'verbose_name': 'Case Party',
                'verbose_name_plural': 'Case Parties',
                'ordering': ['id'],
                'unique_together': {('case', 'role')},
            },
        ),
    ]
