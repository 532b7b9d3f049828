import accounts.models
import django.contrib.auth.models
import django.contrib.auth.validators
import django.db.models.deletion
import django.utils.timezone
from django.conf import settings
from django.db import migrations, models


class Migration(migrations.Migration):

    initial = True

    dependencies = [
        ('auth', '0012_alter_user_first_name_max_length'),
    ]

    operations = [
        migrations.CreateModel(
            name='User',
            fields=[
                ('id', models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name='ID')),
                ('password', models.CharField(max_length=128, verbose_name='password')),
                ('last_login', models.DateTimeField(blank=True, null=True, verbose_name='last login')),
                ('is_superuser', models.BooleanField(default=False, help_text='Designates that this user has all permissions without explicitly assigning them.', verbose_name='superuser status')),
                ('username', models.CharField(error_messages={'unique': 'A user with that username already exists.'}, help_text='Required. 150 characters or fewer. Letters, digits and @/./+/-/_ only.', max_length=150, unique=True, validators=[django.contrib.auth.validators.UnicodeUsernameValidator()], verbose_name='username')),
                ('first_name', models.CharField(blank=True, max_length=150, verbose_name='first name')),
                ('last_name', models.CharField(blank=True, max_length=150, verbose_name='last name')),
                ('is_staff', models.BooleanField(default=False, help_text='Designates whether the user can log into this admin site.', verbose_name='staff status')),
                ('is_active', models.BooleanField(default=True, help_text='Designates whether this user should be treated as active. Unselect this instead of deleting accounts.', verbose_name='active')),
                ('date_joined', models.DateTimeField(default=django.utils.timezone.now, verbose_name='date joined')),
                ('email', models.EmailField(max_length=254, unique=True, verbose_name='Email Address')),
                ('role', models.CharField(choices=[('user', 'User'), ('shaykh', 'Shaykh'), ('admin', 'Admin')], db_index=True, default='user', max_length=10, verbose_name='Role')),
                ('phone_number', models.CharField(blank=True, default='', max_length=30, verbose_name='Phone Number')),
                ('address', models.CharField(blank=True, default='', max_length=255, verbose_name='Address')),
                ('years_of_experience', models.PositiveSmallIntegerField(blank=True, null=True, verbose_name='Years of Experience')),
                ('educational_institution', models.CharField(blank=True, default='', max_length=255, verbose_name='Educational Institution')),
                ('about', models.TextField(blank=True, default='', verbose_name='About')),
                ('where_work', models.CharField(blank=True, default='', max_length=255, verbose_name='Place of Work')),
                ('reset_password_token', models.CharField(blank=True, db_index=True, default='', max_length=64, verbose_name='Reset Password Token (SHA-256)')),
                ('reset_password_expires_at', models.DateTimeField(blank=True, null=True, verbose_name='Reset Password Expiry')),
                ('groups', models.ManyToManyField(blank=True, help_text='The groups this user belongs to. A user will get all permissions granted to each of their groups.', related_name='user_set', related_query_name='user', to='auth.group', verbose_name='groups')),
                ('user_permissions', models.ManyToManyField(blank=True, help_text='Specific permissions for this user.', related_name='user_set', related_query_name='user', to='auth.permission', verbose_name='user permissions')),
            ],
            options={
                'verbose_name': 'User',
                'verbose_name_plural': 'Users',
            },
            managers=[
                ('objects', django.contrib.auth.models.UserManager()),
            ],
        ),
        migrations.CreateModel(
            name='RegistrationToken',
            fields=[
                ('id', models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name='ID')),
                ('created_at', models.DateTimeField(auto_now_add=True, verbose_name='Created At')),
                ('updated_at', models.DateTimeField(auto_now=True, verbose_name='Updated At')),
                ('token', models.CharField(default=accounts.models._generate_token, editable=False, max_length=64, unique=True, verbose_name='Token')),
                ('expires_at', models.DateTimeField(default=accounts.models._default_expiry, verbose_name='Expires At')),
                ('is_used', models.BooleanField(default=False, verbose_name='Used')),
                ('used_at', models.DateTimeField(blank=True, null=True, verbose_name='Used At')),
                ('email', models.EmailField(blank=True, default='', help_text='Optional address the invitation was sent to.', max_length=254, verbose_name='Invited Email')),
                ('created_by', models.ForeignKey(null=True, on_delete=django.db.models.deletion.SET_NULL, related_name='issued_registration_tokens', to=settings.AUTH_USER_MODEL, verbose_name='Issued By')),
                ('used_by', models.ForeignKey(blank=True, null=True, on_delete=django.db.models.deletion.SET_NULL, related_name='consumed_registration_tokens', to=settings.AUTH_USER_MODEL, verbose_name='Used By')),
            ],
            options={
                'verbose_name': 'Registration Token',
                'verbose_name_plural': 'Registration Tokens',
                'ordering': ['-created_at'],
                'indexes': [models.Index(fields=['is_used', 'expires_at'], name='regtoken_used_expiry_idx')],
            },
        ),
    ]
