from django.urls import path

from .views import (
    activity_logs,
    dashboard,
    export,
    home,
    import_assignments,
    import_users,
    login_view,
    logout_view,
    student_list,
    student_me,
)

urlpatterns = [
    path("login/", login_view, name="login"),
    path("logout/", logout_view, name="logout"),
    path("", home, name="home"),
    path("dashboard/", dashboard, name="dashboard"),
    path("me/", student_me, name="student_me"),
    path("students/", student_list, name="student_list"),
    path("logs/", activity_logs, name="activity_logs"),
    path("import/users/", import_users, name="import_users"),
    path("import/assignments/", import_assignments, name="import_assignments"),
    path("export/<slug:kind>/", export, name="export"),
]
