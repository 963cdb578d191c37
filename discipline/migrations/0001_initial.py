# Generated manually for initial schema
from django.conf import settings
from django.db import migrations, models
import django.contrib.auth.models
import django.contrib.auth.validators
import django.utils.timezone
import django.db.models.deletion


class Migration(migrations.Migration):
    initial = True

    dependencies = [
        ("auth", "0012_alter_user_first_name_max_length"),
    ]

    operations = [
        migrations.CreateModel(
            name="User",
            fields=[
                ("id", models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name="ID")),
                ("password", models.CharField(max_length=128, verbose_name="password")),
                ("last_login", models.DateTimeField(blank=True, null=True, verbose_name="last login")),
                ("is_superuser", models.BooleanField(default=False, help_text="Designates that this user has all permissions without explicitly assigning them.", verbose_name="superuser status")),
                ("username", models.CharField(error_messages={"unique": "A user with that username already exists."}, help_text="Required. 150 characters or fewer. Letters, digits and @/./+/-/_ only.", max_length=150, unique=True, validators=[django.contrib.auth.validators.UnicodeUsernameValidator()], verbose_name="username")),
                ("first_name", models.CharField(blank=True, max_length=150, verbose_name="first name")),
                ("last_name", models.CharField(blank=True, max_length=150, verbose_name="last name")),
                ("email", models.EmailField(blank=True, max_length=254, verbose_name="email address")),
                ("is_staff", models.BooleanField(default=False, help_text="Designates whether the user can log into this admin site.", verbose_name="staff status")),
                ("is_active", models.BooleanField(default=True, help_text="Designates whether this user should be treated as active. Unselect this instead of deleting accounts.", verbose_name="active")),
                ("date_joined", models.DateTimeField(default=django.utils.timezone.now, verbose_name="date joined")),
                ("nama", models.CharField(max_length=150)),
                (
                    "jenis_kelamin",
                    models.CharField(choices=[("laki-laki", "Laki-laki"), ("perempuan", "Perempuan")], max_length=10),
                ),
                (
                    "role",
                    models.CharField(
                        choices=[
                            ("superadmin", "Super Admin"),
                            ("admin", "Admin"),
                            ("tds", "Tim Disiplin Siswa"),
                            ("guru", "Guru"),
                            ("siswa", "Siswa"),
                        ],
                        max_length=20,
                    ),
                ),
                ("photo", models.TextField(blank=True)),
                (
                    "groups",
                    models.ManyToManyField(blank=True, help_text="The groups this user belongs to. A user will get all permissions granted to each of their groups.", related_name="user_set", related_query_name="user", to="auth.group", verbose_name="groups"),
                ),
                (
                    "user_permissions",
                    models.ManyToManyField(blank=True, help_text="Specific permissions for this user.", related_name="user_set", related_query_name="user", to="auth.permission", verbose_name="user permissions"),
                ),
            ],
            options={"ordering": ["id"]},
            managers=[("objects", django.contrib.auth.models.UserManager())],
        ),
        migrations.CreateModel(
            name="RemediationAction",
            fields=[
                ("id", models.PositiveIntegerField(primary_key=True, serialize=False)),
                ("desk_perbaikan", models.TextField()),
                (
                    "jenis_perbaikan",
                    models.CharField(choices=[("Mudah", "Mudah"), ("Cukup", "Cukup"), ("Sulit", "Sulit")], max_length=10),
                ),
                ("point_perbaikan", models.PositiveIntegerField()),
            ],
            options={"ordering": ["id"]},
        ),
        migrations.CreateModel(
            name="Sanction",
            fields=[
                ("id", models.PositiveIntegerField(primary_key=True, serialize=False)),
                ("desk_kesalahan", models.TextField()),
                (
                    "jenis_sanksi",
                    models.CharField(choices=[("Ringan", "Ringan"), ("Sedang", "Sedang"), ("Berat", "Berat")], max_length=10),
                ),
                ("point_pelanggar", models.PositiveIntegerField()),
            ],
            options={"ordering": ["id"]},
        ),
        migrations.CreateModel(
            name="ActivityLog",
            fields=[
                ("id", models.PositiveIntegerField(primary_key=True, serialize=False)),
                ("timestamp", models.DateTimeField(default=django.utils.timezone.now)),
                ("username", models.CharField(max_length=150)),
                (
                    "action",
                    models.CharField(
                        choices=[
                            ("Tambah", "Tambah"),
                            ("Ubah", "Ubah"),
                            ("Hapus", "Hapus"),
                            ("Login", "Login"),
                            ("Logout", "Logout"),
                            ("Import", "Import"),
                            ("Export", "Export"),
                        ],
                        max_length=10,
                    ),
                ),
                (
                    "entity",
                    models.CharField(
                        choices=[
                            ("Pengguna", "Pengguna"),
                            ("Siswa", "Siswa"),
                            ("Kelas", "Kelas"),
                            ("Sanksi", "Sanksi"),
                            ("Introspeksi", "Introspeksi"),
                            ("Bimbingan", "Bimbingan"),
                            ("Pelanggaran", "Pelanggaran"),
                            ("Profil", "Profil"),
                            ("Pengaturan", "Pengaturan"),
                            ("Autentikasi", "Autentikasi"),
                            ("Laporan", "Laporan"),
                        ],
                        max_length=20,
                    ),
                ),
                ("details", models.TextField()),
            ],
            options={"ordering": ["-id"]},
        ),
        migrations.CreateModel(
            name="SchoolClass",
            fields=[
                ("id", models.PositiveIntegerField(primary_key=True, serialize=False)),
                ("kelas", models.CharField(max_length=50)),
                ("tingkat", models.CharField(choices=[("X", "X"), ("XI", "XI"), ("XII", "XII")], max_length=3)),
                (
                    "wali_kelas",
                    models.ForeignKey(
                        blank=True,
                        db_column="id_guru",
                        null=True,
                        on_delete=django.db.models.deletion.SET_NULL,
                        related_name="homeroom_classes",
                        to=settings.AUTH_USER_MODEL,
                        to_field="username",
                    ),
                ),
            ],
            options={"ordering": ["id"]},
        ),
        migrations.CreateModel(
            name="StudentAssignment",
            fields=[
                (
                    "siswa",
                    models.OneToOneField(
                        db_column="nipd",
                        on_delete=django.db.models.deletion.CASCADE,
                        primary_key=True,
                        related_name="class_assignment",
                        serialize=False,
                        to=settings.AUTH_USER_MODEL,
                        to_field="username",
                    ),
                ),
                (
                    "kelas",
                    models.ForeignKey(
                        blank=True,
                        db_column="id_kelas",
                        null=True,
                        on_delete=django.db.models.deletion.SET_NULL,
                        related_name="assignments",
                        to="discipline.schoolclass",
                    ),
                ),
            ],
            options={"ordering": ["siswa_id"]},
        ),
        migrations.CreateModel(
            name="Violation",
            fields=[
                ("id", models.PositiveIntegerField(primary_key=True, serialize=False)),
                ("tanggal", models.DateField()),
                (
                    "sanksi",
                    models.ForeignKey(
                        db_column="id_sanksi",
                        on_delete=django.db.models.deletion.CASCADE,
                        related_name="violations",
                        to="discipline.sanction",
                    ),
                ),
                (
                    "siswa",
                    models.ForeignKey(
                        db_column="nipd",
                        on_delete=django.db.models.deletion.CASCADE,
                        related_name="violations",
                        to=settings.AUTH_USER_MODEL,
                        to_field="username",
                    ),
                ),
            ],
            options={
                "ordering": ["id"],
                "indexes": [models.Index(fields=["siswa", "tanggal"], name="discipline_viol_siswa_tgl")],
            },
        ),
        migrations.CreateModel(
            name="Guidance",
            fields=[
                ("id", models.PositiveIntegerField(primary_key=True, serialize=False)),
                ("tanggal", models.DateField()),
                (
                    "perbaikan",
                    models.ForeignKey(
                        db_column="id_perbaikan",
                        on_delete=django.db.models.deletion.CASCADE,
                        related_name="guidance_records",
                        to="discipline.remediationaction",
                    ),
                ),
                (
                    "siswa",
                    models.ForeignKey(
                        db_column="nipd",
                        on_delete=django.db.models.deletion.CASCADE,
                        related_name="guidance_records",
                        to=settings.AUTH_USER_MODEL,
                        to_field="username",
                    ),
                ),
            ],
            options={
                "ordering": ["id"],
                "indexes": [models.Index(fields=["siswa", "tanggal"], name="discipline_guid_siswa_tgl")],
            },
        ),
    ]
