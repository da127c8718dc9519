import logging

from django.contrib.auth import authenticate, login, logout
from django.contrib.auth.models import User
from rest_framework import serializers, status
from rest_framework.permissions import AllowAny
from rest_framework.response import Response
from rest_framework.views import APIView

from . import subscriptions
from .serializers import UserSerializer

logger = logging.getLogger(__name__)


class RegisterSerializer(serializers.ModelSerializer):
    password = serializers.CharField(write_only=True, min_length=8)

    class Meta:
        model = User
        fields = ['username', 'email', 'password', 'first_name', 'last_name']
        extra_kwargs = {'email': {'required': True}}

    def validate_email(self, value):
        if User.objects.filter(email__iexact=value).exists():
            raise serializers.ValidationError("An account with this email already exists.")
        return value.lower()

    def create(self, validated_data):
        return User.objects.create_user(**validated_data)


class LoginSerializer(serializers.Serializer):
    username = serializers.CharField()
    password = serializers.CharField(write_only=True)


def user_payload(user):
    return {"user": UserSerializer(user).data, "subscription": subscriptions.summary(user)}


class RegisterAPIView(APIView):
    permission_classes = [AllowAny]

    def post(self, request):
        serializer = RegisterSerializer(data=request.data)
        if not serializer.is_valid():
            return Response({"error": "Invalid registration details.", "details": serializer.errors},
                            status=status.HTTP_400_BAD_REQUEST)
        user = serializer.save()
        login(request, user)
        logger.info(f"User registered: {user.username}")
        return Response(user_payload(user), status=status.HTTP_201_CREATED)


class LoginAPIView(APIView):
    permission_classes = [AllowAny]

    def post(self, request):
        serializer = LoginSerializer(data=request.data)
        if not serializer.is_valid():
            return Response({"error": "Username and password are required.", "details": serializer.errors},
                            status=status.HTTP_400_BAD_REQUEST)

        user = authenticate(request, **serializer.validated_data)
        if user is None:
            return Response({"error": "Invalid username or password.", "code": "AuthenticationRequired"},
                            status=status.HTTP_401_UNAUTHORIZED)
        login(request, user)
        return Response(user_payload(user), status=status.HTTP_200_OK)


class LogoutAPIView(APIView):
    def post(self, request):
        logout(request)
        return Response({"message": "Logged out"}, status=status.HTTP_200_OK)


class CurrentUserAPIView(APIView):
    def get(self, request):
        return Response(user_payload(request.user), status=status.HTTP_200_OK)
