from drf_spectacular.utils import extend_schema
from rest_framework.exceptions import NotFound
from rest_framework.exceptions import ValidationError
from rest_framework.parsers import FormParser
from rest_framework.parsers import MultiPartParser
from rest_framework.response import Response
from rest_framework.views import APIView

from halogin.creators.models import CreatorProfile
from halogin.creators.services import PROFILE_FIELDS
from halogin.creators.services import upsert_creator_profile
from halogin.integrations.embeddings.search import rank_by_similarity
from halogin.storage.images import ImageForm

from .serializers import CreatorProfileSerializer
from .serializers import CreatorSearchResultSerializer
from .serializers import SearchQuerySerializer


class CreatorProfileView(APIView):
    parser_classes = [MultiPartParser, FormParser]

    @extend_schema(responses={200: CreatorProfileSerializer})
    def get(self, request, *args, **kwargs):
        profile = CreatorProfile.objects.filter(user=request.user).first()
        if profile is None:
            msg = "There is no creator profile information for you."
            raise NotFound(msg)
        return Response(CreatorProfileSerializer(profile).data)

    @extend_schema(responses={200: CreatorProfileSerializer})
    def post(self, request, *args, **kwargs):
        form = ImageForm.from_request(request)
        missing = form.missing_fields(PROFILE_FIELDS)
        if missing:
            raise ValidationError({"detail": f"Missing fields: {missing}", "missing": missing})
        profile = upsert_creator_profile(request.user, form)
        return Response(CreatorProfileSerializer(profile).data)


class CreatorSearchView(APIView):
    @extend_schema(
        parameters=[SearchQuerySerializer],
        responses={200: CreatorSearchResultSerializer(many=True)},
    )
    def get(self, request, *args, **kwargs):
        params = SearchQuerySerializer(data=request.query_params)
        params.is_valid(raise_exception=True)
        results = rank_by_similarity(
            CreatorProfile.objects.all(),
            params.validated_data["q"],
            params.validated_data["limit"],
        )
        return Response(CreatorSearchResultSerializer(results, many=True).data)
