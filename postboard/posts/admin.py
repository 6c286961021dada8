from django.contrib import admin

from postboard.posts import models


@admin.register(models.Post)
class PostAdmin(admin.ModelAdmin):
    list_display = ["id", "title", "author", "created_at"]
    search_fields = ["title", "body", "author__username"]
    list_filter = ["created_at"]
    readonly_fields = ["author", "title", "body", "created_at"]

    # Posts are created through the submission pipeline only, which is what
    # announces them to subscribers.
    def has_add_permission(self, request):
        return False

    def has_change_permission(self, request, obj=None):
        return False
