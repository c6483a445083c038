from django.urls import path

from . import views

app_name = "ledger_core"

urlpatterns = [
    path("reports/<slug:report_type>/", views.report_view, name="report"),
    path("documents/<slug:kind>/<int:pk>/post/", views.post_document_view, name="post-document"),
    path("documents/<slug:kind>/<int:pk>/unpost/", views.unpost_document_view, name="unpost-document"),
]
