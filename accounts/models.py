from django.contrib.auth.models import AbstractUser
from django.db import models

class User(AbstractUser):
    email = models.EmailField(unique=True)
    affiliation = models.CharField(max_length=255, blank=True)

    class Meta:
        ordering = ['id']

    def __str__(self):
        return self.get_full_name() or self.username

    @property
    def is_admin(self):
        """Site administrators may act as chair in every conference."""
        return self.is_superuser
