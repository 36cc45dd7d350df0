from django.urls import path

from . import views

urlpatterns = [
    path("", views.CompanyListCreateView.as_view(), name="company-list"),
    path("invite", views.MyInvitesView.as_view(), name="company-my-invites"),
    path("user-profile", views.CompanyUserProfileView.as_view(), name="company-user-profile"),
    path("search", views.CompanySearchView.as_view(), name="company-search"),
    path("<uuid:company_id>", views.CompanyDetailView.as_view(), name="company-detail"),
    path("<uuid:company_id>/user", views.CompanyMembersView.as_view(), name="company-users"),
    path("<uuid:company_id>/invite", views.CompanyInviteView.as_view(), name="company-invite"),
    path(
        "<uuid:company_id>/invite/accept",
        views.AcceptInviteView.as_view(),
        name="company-invite-accept",
    ),
    path(
        "<uuid:company_id>/invite/reject",
        views.RejectInviteView.as_view(),
        name="company-invite-reject",
    ),
]
