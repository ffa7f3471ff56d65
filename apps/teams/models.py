# ==========================================
# apps/teams/models.py
# ==========================================

from django.db import models
import uuid


class TeamRole(models.TextChoices):
    OWNER = 'owner', 'Owner'
    MANAGER = 'manager', 'Manager'
    PLAYER = 'player', 'Player'


MANAGER_ROLES = (TeamRole.OWNER, TeamRole.MANAGER)


class Team(models.Model):
    """Sports team ordering apparel together."""

    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    name = models.CharField(max_length=200)
    slug = models.SlugField(max_length=200, unique=True)
    sport = models.ForeignKey(
        'catalog.Sport',
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name='teams'
    )
    owner = models.ForeignKey('accounts.User', on_delete=models.CASCADE, related_name='owned_teams')
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        db_table = 'teams'
        ordering = ['-created_at']

    def __str__(self):
        return self.name

    def has_member(self, user):
        return self.memberships.filter(user=user).exists()

    def get_user_role(self, user):
        try:
            return self.memberships.get(user=user).role
        except TeamMembership.DoesNotExist:
            return None

    def is_manager(self, user):
        return self.get_user_role(user) in MANAGER_ROLES


class TeamMembership(models.Model):
    """User membership in a team with role."""

    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    user = models.ForeignKey('accounts.User', on_delete=models.CASCADE, related_name='team_memberships')
    team = models.ForeignKey(Team, on_delete=models.CASCADE, related_name='memberships')
    role = models.CharField(max_length=20, choices=TeamRole.choices, default=TeamRole.PLAYER)
    joined_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        db_table = 'team_memberships'
        unique_together = [['user', 'team']]
        indexes = [
            models.Index(fields=['team', 'role'], name='team_member_team_role_idx'),
        ]
        ordering = ['joined_at']

    def __str__(self):
        return f"{self.user.get_display_name()} in {self.team.name} ({self.role})"

    def save(self, *args, **kwargs):
        if self.team.owner_id == self.user_id:
            self.role = TeamRole.OWNER
        super().save(*args, **kwargs)


class PlayerInfoSubmission(models.Model):
    """Kit details (name, number, size) submitted for one player."""

    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    team = models.ForeignKey(Team, on_delete=models.CASCADE, related_name='player_submissions')
    design_request = models.ForeignKey(
        'orders.DesignRequest',
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name='player_submissions'
    )
    user = models.ForeignKey(
        'accounts.User',
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name='player_submissions'
    )

    player_name = models.CharField(max_length=150)
    jersey_number = models.CharField(max_length=10, blank=True)
    size = models.CharField(max_length=10)
    position = models.CharField(max_length=50, blank=True)
    additional_notes = models.TextField(blank=True)

    # A manager may enter data on behalf of a player; the player still confirms
    submitted_by_manager = models.BooleanField(default=False)
    confirmed_by_player = models.BooleanField(default=False)

    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        db_table = 'player_info_submissions'
        ordering = ['created_at']

    def __str__(self):
        number = f" #{self.jersey_number}" if self.jersey_number else ''
        return f"{self.player_name}{number} ({self.size})"


class ShippingAddress(models.Model):
    """Delivery address registered for a team."""

    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    team = models.ForeignKey(Team, on_delete=models.CASCADE, related_name='shipping_addresses')
    recipient_name = models.CharField(max_length=150)
    street_address = models.CharField(max_length=255)
    commune = models.CharField(max_length=100)
    city = models.CharField(max_length=100)
    region = models.CharField(max_length=100)
    postal_code = models.CharField(max_length=20, blank=True)
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        db_table = 'shipping_addresses'
        ordering = ['-created_at']

    def __str__(self):
        return f"{self.recipient_name}, {self.street_address}, {self.commune}"
