from drf_spectacular.types import OpenApiTypes
from drf_spectacular.utils import extend_schema
from rest_framework import status
from rest_framework.exceptions import NotFound
from rest_framework.exceptions import ValidationError
from rest_framework.parsers import FormParser
from rest_framework.parsers import JSONParser
from rest_framework.parsers import MultiPartParser
from rest_framework.permissions import IsAuthenticated
from rest_framework.response import Response
from rest_framework.views import APIView

from halogin.companies import services
from halogin.companies.models import Company
from halogin.companies.models import CompanyUserProfile
from halogin.creators.api.serializers import SearchQuerySerializer
from halogin.integrations.embeddings.search import rank_by_similarity
from halogin.storage.images import ImageForm

from .permissions import IsCompanyAdmin
from .serializers import CompanyCreatedSerializer
from .serializers import CompanySearchResultSerializer
from .serializers import CompanySerializer
from .serializers import CompanyUserProfileSerializer
from .serializers import CompanyWithMembersSerializer
from .serializers import InviteSerializer
from .serializers import UninviteSerializer


def _form_with(request, required) -> ImageForm:
    form = ImageForm.from_request(request)
    missing = form.missing_fields(required)
    if missing:
        raise ValidationError({"detail": f"Missing fields: {missing}", "missing": missing})
    return form


class CompanyListCreateView(APIView):
    parser_classes = [MultiPartParser, FormParser]

    @extend_schema(responses={200: CompanyWithMembersSerializer(many=True)})
    def get(self, request, *args, **kwargs):
        return Response(services.list_for_user(request.user))

    @extend_schema(responses={200: CompanyCreatedSerializer})
    def post(self, request, *args, **kwargs):
        form = _form_with(request, services.COMPANY_FIELDS)
        company = services.create_company(request.user, form)
        return Response({"company_id": str(company.id)})


class CompanyDetailView(APIView):
    permission_classes = [IsAuthenticated, IsCompanyAdmin]
    parser_classes = [MultiPartParser, FormParser]

    @extend_schema(responses={200: CompanySerializer})
    def patch(self, request, company_id, *args, **kwargs):
        company = Company.objects.get(pk=company_id)
        form = _form_with(request, services.COMPANY_FIELDS)
        company = services.update_company(company, form)
        return Response(CompanySerializer(company).data)


class CompanyMembersView(APIView):
    permission_classes = [IsAuthenticated, IsCompanyAdmin]

    @extend_schema(responses={200: OpenApiTypes.OBJECT})
    def get(self, request, company_id, *args, **kwargs):
        return Response(services.members_map(company_id))


class CompanyInviteView(APIView):
    permission_classes = [IsAuthenticated, IsCompanyAdmin]
    parser_classes = [JSONParser, FormParser, MultiPartParser]

    @extend_schema(request=InviteSerializer, responses={201: None})
    def post(self, request, company_id, *args, **kwargs):
        serializer = InviteSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        services.invite(
            Company.objects.get(pk=company_id),
            request.user,
            serializer.validated_data["google_email"],
            is_admin=serializer.validated_data["is_admin"],
        )
        return Response(status=status.HTTP_201_CREATED)

    @extend_schema(request=UninviteSerializer, responses={204: None})
    def delete(self, request, company_id, *args, **kwargs):
        serializer = UninviteSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        services.uninvite(
            Company.objects.get(pk=company_id),
            serializer.validated_data["google_email"],
        )
        return Response(status=status.HTTP_204_NO_CONTENT)


class MyInvitesView(APIView):
    def get(self, request, *args, **kwargs):
        return Response(services.list_invites_for_user(request.user))


class AcceptInviteView(APIView):
    def get(self, request, company_id, *args, **kwargs):
        member = services.accept_invites(company_id, request.user)
        return Response({"company_id": str(company_id), "is_admin": member.is_admin})


class RejectInviteView(APIView):
    def get(self, request, company_id, *args, **kwargs):
        services.reject_invites(company_id, request.user)
        return Response(status=status.HTTP_204_NO_CONTENT)


class CompanyUserProfileView(APIView):
    parser_classes = [MultiPartParser, FormParser]

    @extend_schema(responses={200: CompanyUserProfileSerializer})
    def get(self, request, *args, **kwargs):
        profile = CompanyUserProfile.objects.filter(user=request.user).first()
        if profile is None:
            msg = "No company user profile found for this user"
            raise NotFound(msg)
        return Response(CompanyUserProfileSerializer(profile).data)

    @extend_schema(responses={200: CompanyUserProfileSerializer})
    def post(self, request, *args, **kwargs):
        form = _form_with(request, services.PROFILE_FIELDS)
        profile = services.upsert_company_user_profile(request.user, form)
        return Response(CompanyUserProfileSerializer(profile).data)


class CompanySearchView(APIView):
    @extend_schema(
        parameters=[SearchQuerySerializer],
        responses={200: CompanySearchResultSerializer(many=True)},
    )
    def get(self, request, *args, **kwargs):
        params = SearchQuerySerializer(data=request.query_params)
        params.is_valid(raise_exception=True)
        results = rank_by_similarity(
            Company.objects.all(),
            params.validated_data["q"],
            params.validated_data["limit"],
        )
        return Response(CompanySearchResultSerializer(results, many=True).data)
