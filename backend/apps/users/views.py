"""
Profile views: get, update and soft-delete the authenticated user's profile.

The update request runs a fixed pipeline:
authenticate -> cooldown throttle -> validate -> stage upload -> update + audit
(one transaction) -> respond. A staged upload is discarded if anything after
staging fails.
"""

from rest_framework import status
from rest_framework.decorators import (
    api_view,
    parser_classes,
    permission_classes,
    throttle_classes,
)
from rest_framework.parsers import FormParser, JSONParser, MultiPartParser
from rest_framework.response import Response

from apps.audit.services import provenance_from_request
from apps.users import services
from apps.users.serializers import ProfileSerializer, ProfileUpdateSerializer
from profile_service.exceptions import ValidationError
from profile_service.permissions import IsActiveProfile
from profile_service.throttling import ProfileUpdateCooldown
from profile_service.validation import first_error_message


@api_view(["GET", "PUT", "DELETE"])
@permission_classes([IsActiveProfile])
@parser_classes([JSONParser, MultiPartParser, FormParser])
@throttle_classes([ProfileUpdateCooldown])
def profile(request):
    """
    GET /api/users/profile - Current user's profile
    PUT /api/users/profile - Update profile (JSON or multipart with profilePicture)
    DELETE /api/users/profile - Soft-delete the account
    """
    if request.method == "GET":
        return get_profile(request)
    if request.method == "PUT":
        return update_profile(request)
    return delete_profile(request)


def get_profile(request):
    user = services.get_profile(request.user.id)
    return Response(
        {"success": True, "data": ProfileSerializer(user).data},
        status=status.HTTP_200_OK,
    )


def update_profile(request):
    serializer = ProfileUpdateSerializer(data=request.data)
    if not serializer.is_valid():
        raise ValidationError(
            f"Validation error: {first_error_message(serializer.errors)}",
            {"errors": serializer.errors},
        )

    updates = dict(serializer.validated_data)
    upload = updates.pop("profile_picture", None)

    picture_path = None
    if upload is not None:
        picture_path = services.stage_profile_picture(upload)

    try:
        user, _ = services.update_profile(
            request.user.id,
            updates,
            picture=picture_path,
            actor_id=request.user.id,
            provenance=provenance_from_request(request),
        )
    except Exception:
        if picture_path is not None:
            services.discard_staged_file(picture_path)
        raise

    return Response(
        {
            "success": True,
            "message": "Profile updated successfully",
            "data": ProfileSerializer(user).data,
        },
        status=status.HTTP_200_OK,
    )


def delete_profile(request):
    services.delete_profile(
        request.user.id,
        actor_id=request.user.id,
        provenance=provenance_from_request(request),
    )
    return Response(
        {"success": True, "message": "Profile deleted successfully"},
        status=status.HTTP_200_OK,
    )
