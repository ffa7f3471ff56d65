# ==========================================
# apps/catalog/admin.py
# ==========================================

from django.contrib import admin
from .models import Sport, Product, Design, DesignProduct


@admin.register(Sport)
class SportAdmin(admin.ModelAdmin):
    list_display = ['name', 'slug']
    search_fields = ['name', 'slug']
    prepopulated_fields = {'slug': ('name',)}


@admin.register(Product)
class ProductAdmin(admin.ModelAdmin):
    list_display = ['name', 'slug', 'category', 'price_clp', 'sport_ids', 'updated_at']
    list_filter = ['category']
    search_fields = ['name', 'slug']
    prepopulated_fields = {'slug': ('name',)}
    readonly_fields = ['created_at', 'updated_at']


class DesignProductInline(admin.TabularInline):
    """Products a design can be produced on."""
    model = DesignProduct
    extra = 0
    fields = ['product', 'is_recommended']


@admin.register(Design)
class DesignAdmin(admin.ModelAdmin):
    list_display = ['name', 'slug', 'sport', 'created_at']
    list_filter = ['sport']
    search_fields = ['name', 'slug']
    prepopulated_fields = {'slug': ('name',)}
    inlines = [DesignProductInline]
