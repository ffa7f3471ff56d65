from django.db import models


class Sport(models.Model):
    """Sport a team plays; products are offered per sport."""

    name = models.CharField(max_length=100)
    slug = models.SlugField(max_length=100, unique=True)

    class Meta:
        db_table = 'sports'
        ordering = ['name']

    def __str__(self):
        return self.name


class Product(models.Model):
    """Sellable apparel product (jersey, shorts, ...)."""

    name = models.CharField(max_length=200)
    slug = models.SlugField(max_length=200, unique=True)
    category = models.CharField(max_length=50, blank=True)
    price_clp = models.PositiveIntegerField(default=0)

    # Sports this product is offered for. Older rows store the ids as
    # strings, newer ones as integers.
    sport_ids = models.JSONField(default=list, blank=True)

    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        db_table = 'products'
        ordering = ['id']

    def __str__(self):
        return f"{self.name} ({self.price_clp} CLP)"

    def is_offered_for(self, sport_id):
        """Check sport membership under either id representation."""
        ids = self.sport_ids or []
        return sport_id in ids or str(sport_id) in ids


class Design(models.Model):
    """Catalog design template a design request can start from."""

    name = models.CharField(max_length=200)
    slug = models.SlugField(max_length=200, unique=True)
    sport = models.ForeignKey(
        Sport,
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name='designs'
    )
    products = models.ManyToManyField(Product, through='DesignProduct', related_name='designs')
    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        db_table = 'designs'
        ordering = ['name']

    def __str__(self):
        return self.name


class DesignProduct(models.Model):
    """Product a design can be produced on."""

    design = models.ForeignKey(Design, on_delete=models.CASCADE, related_name='product_links')
    product = models.ForeignKey(Product, on_delete=models.CASCADE, related_name='design_links')
    is_recommended = models.BooleanField(default=False)
    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        db_table = 'design_products'
        unique_together = [['design', 'product']]
        ordering = ['id']

    def __str__(self):
        flag = ' (recommended)' if self.is_recommended else ''
        return f"{self.design.name} -> {self.product.name}{flag}"
