"""
ShopCore Models - Catalog & Reviews
Tables: Users, Products, Reviews, ReviewVotes
"""
from decimal import Decimal

from django.core.validators import MinValueValidator, MaxValueValidator
from django.db import models
from django.db.models import Avg, Count

from apps.core.models import BaseModel
from apps.core.utils import round_rating


class User(BaseModel):
    """
    Customer account in the storefront.
    Identity is resolved by email; credentials live with the auth provider.
    """
    name = models.CharField(max_length=255)
    email = models.EmailField(unique=True)
    image = models.URLField(blank=True, null=True)

    class Meta:
        db_table = 'shopcore_users'
        verbose_name = 'User'
        verbose_name_plural = 'Users'

    def __str__(self):
        return f"{self.name} ({self.email})"


class Product(BaseModel):
    """
    Product in the catalog.
    """
    name = models.CharField(max_length=60)
    description = models.CharField(max_length=200)
    price = models.DecimalField(
        max_digits=10,
        decimal_places=2,
        validators=[MinValueValidator(Decimal('0')), MaxValueValidator(Decimal('99999'))]
    )
    image = models.CharField(max_length=500)
    category = models.CharField(max_length=50, db_index=True)
    stock = models.PositiveIntegerField(default=0)
    rating = models.DecimalField(max_digits=2, decimal_places=1, default=Decimal('0'))
    num_reviews = models.PositiveIntegerField(default=0)

    class Meta:
        db_table = 'shopcore_products'
        verbose_name = 'Product'
        verbose_name_plural = 'Products'
        ordering = ['-created_at']

    def __str__(self):
        return f"{self.name} ({self.price} TL)"


class ReviewQuerySet(models.QuerySet):

    def approved(self):
        return self.filter(approved=True)

    def product_rating(self, product_id):
        """
        Average rating, review count and per-star breakdown over the
        approved reviews of a product.
        """
        reviews = self.approved().filter(product_id=product_id)
        summary = reviews.aggregate(average=Avg('rating'), total=Count('id'))

        breakdown = {5: 0, 4: 0, 3: 0, 2: 0, 1: 0}
        for row in reviews.values('rating').annotate(count=Count('id')):
            breakdown[row['rating']] = row['count']

        if not summary['total']:
            return {
                "average_rating": Decimal('0'),
                "total_reviews": 0,
                "rating_breakdown": breakdown,
            }

        return {
            "average_rating": round_rating(summary['average']),
            "total_reviews": summary['total'],
            "rating_breakdown": breakdown,
        }


class Review(BaseModel):
    """
    Product review written by a user. One review per (user, product).
    """
    VOTE_HELPFUL = 'helpful'
    VOTE_NOT_HELPFUL = 'not-helpful'

    user = models.ForeignKey(User, on_delete=models.CASCADE, related_name='reviews')
    product = models.ForeignKey(Product, on_delete=models.CASCADE, related_name='reviews')
    rating = models.PositiveSmallIntegerField(
        validators=[MinValueValidator(1), MaxValueValidator(5)]
    )
    title = models.CharField(max_length=100)
    comment = models.CharField(max_length=1000)
    pros = models.JSONField(default=list, blank=True)
    cons = models.JSONField(default=list, blank=True)
    images = models.JSONField(default=list, blank=True)
    verified = models.BooleanField(default=False)
    helpful = models.PositiveIntegerField(default=0)
    not_helpful = models.PositiveIntegerField(default=0)
    reported = models.BooleanField(default=False)
    approved = models.BooleanField(default=True)

    objects = ReviewQuerySet.as_manager()

    class Meta:
        db_table = 'shopcore_reviews'
        verbose_name = 'Review'
        verbose_name_plural = 'Reviews'
        ordering = ['-created_at']
        constraints = [
            models.UniqueConstraint(fields=['user', 'product'], name='unique_review_per_user_product'),
        ]
        indexes = [
            models.Index(fields=['product', 'created_at']),
            models.Index(fields=['product', 'rating']),
        ]

    def __str__(self):
        return f"{self.rating}/5 by {self.user_id} on {self.product_id}"


class ReviewVote(BaseModel):
    """
    A user's helpful / not-helpful vote on a review. One vote per user.
    """
    VOTE_CHOICES = [
        (Review.VOTE_HELPFUL, 'Helpful'),
        (Review.VOTE_NOT_HELPFUL, 'Not helpful'),
    ]

    review = models.ForeignKey(Review, on_delete=models.CASCADE, related_name='votes')
    user = models.ForeignKey(User, on_delete=models.CASCADE, related_name='review_votes')
    vote = models.CharField(max_length=20, choices=VOTE_CHOICES)

    class Meta:
        db_table = 'shopcore_review_votes'
        verbose_name = 'Review Vote'
        verbose_name_plural = 'Review Votes'
        constraints = [
            models.UniqueConstraint(fields=['review', 'user'], name='unique_vote_per_user'),
        ]

    def __str__(self):
        return f"{self.vote} on {self.review_id}"
