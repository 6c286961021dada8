from django.conf import settings
from rest_framework.routers import DefaultRouter
from rest_framework.routers import SimpleRouter

from postboard.posts.api.views import PostViewSet

router = DefaultRouter() if settings.DEBUG else SimpleRouter()

router.register("posts", PostViewSet, basename="posts")


app_name = "api"
urlpatterns = router.urls
