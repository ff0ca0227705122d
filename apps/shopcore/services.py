"""
ShopCore services - user lookup, catalog search, reviews and review voting.
"""
import logging
import math
from typing import Any, Dict, Optional

from django.core.exceptions import ValidationError as DjangoValidationError
from django.db import IntegrityError, transaction
from django.db.models import Q

from apps.core.exceptions import AuthenticationRequired, DuplicateReviewError, NotFoundError
from apps.core.utils import get_or_not_found
from .models import User, Product, Review, ReviewVote

logger = logging.getLogger(__name__)


PRODUCT_SORTS = {
    'newest': ['-created_at'],
    'price-low': ['price'],
    'price-high': ['-price'],
    'rating': ['-rating', '-num_reviews'],
    'popular': ['-num_reviews', '-rating'],
}

REVIEW_SORTS = {
    'newest': ['-created_at'],
    'oldest': ['created_at'],
    'highest-rating': ['-rating', '-created_at'],
    'lowest-rating': ['rating', '-created_at'],
    'most-helpful': ['-helpful', '-created_at'],
}


def resolve_user(email: Optional[str]) -> User:
    """
    Resolve the acting user from the email the client sends.
    Missing email is an authentication gap (401), unknown email a 404.
    """
    if not email or not email.strip():
        raise AuthenticationRequired("User email required")
    try:
        return User.objects.get(email__iexact=email.strip())
    except User.DoesNotExist:
        raise NotFoundError("User", email)


def get_product(product_id) -> Product:
    return get_or_not_found(Product, product_id, "Product")


def search_products(
    search: Optional[str] = None,
    category: Optional[str] = None,
    min_price=None,
    max_price=None,
    sort_by: str = 'newest',
):
    """
    Filter the catalog by free-text search, category and price range.
    """
    products = Product.objects.all()

    if search:
        products = products.filter(
            Q(name__icontains=search)
            | Q(description__icontains=search)
            | Q(category__icontains=search)
        )

    if category:
        products = products.filter(category=category)

    if min_price is not None:
        products = products.filter(price__gte=min_price)
    if max_price is not None:
        products = products.filter(price__lte=max_price)

    return products.order_by(*PRODUCT_SORTS.get(sort_by, PRODUCT_SORTS['newest']))


def list_reviews(
    product_id=None,
    user_id=None,
    rating: Optional[int] = None,
    sort: str = 'newest',
    page: int = 1,
    limit: int = 10,
) -> Dict[str, Any]:
    """
    Approved reviews matching the filters, one page at a time.
    """
    page = max(page, 1)
    limit = max(limit, 1)

    reviews = Review.objects.approved().select_related('user', 'product')
    if product_id:
        reviews = reviews.filter(product_id=product_id)
    if user_id:
        reviews = reviews.filter(user_id=user_id)
    if rating is not None and 1 <= rating <= 5:
        reviews = reviews.filter(rating=rating)

    reviews = reviews.order_by(*REVIEW_SORTS.get(sort, REVIEW_SORTS['newest']))

    total_count = reviews.count()
    total_pages = math.ceil(total_count / limit)
    offset = (page - 1) * limit

    return {
        "reviews": list(reviews[offset:offset + limit]),
        "pagination": {
            "current_page": page,
            "total_pages": total_pages,
            "total_count": total_count,
            "has_next": page < total_pages,
            "has_prev": page > 1,
        },
    }


def refresh_product_rating(product: Product) -> Product:
    """Write the aggregate rating and review count back onto the product."""
    summary = Review.objects.product_rating(product.pk)
    product.rating = summary['average_rating']
    product.num_reviews = summary['total_reviews']
    product.save(update_fields=['rating', 'num_reviews', 'updated_at'])
    return product


def create_review(user: User, data: Dict[str, Any]) -> Review:
    """
    Create a review and recompute the product's aggregate rating.
    """
    product = get_product(data['product_id'])

    if Review.objects.filter(user=user, product=product).exists():
        logger.warning(f"Duplicate review rejected: user={user.pk} product={product.pk}")
        raise DuplicateReviewError()

    try:
        with transaction.atomic():
            review = Review.objects.create(
                user=user,
                product=product,
                rating=data['rating'],
                title=data['title'].strip(),
                comment=data['comment'].strip(),
                pros=[p.strip() for p in data.get('pros', []) if p.strip()],
                cons=[c.strip() for c in data.get('cons', []) if c.strip()],
                images=[i.strip() for i in data.get('images', []) if i.strip()],
                verified=False,
            )
            refresh_product_rating(product)
    except IntegrityError:
        # Lost a race against a concurrent submission for the same pair
        raise DuplicateReviewError()

    logger.info(f"Review {review.pk} created for product {product.pk} (rating {review.rating})")
    return review


def vote_on_review(user: User, review_id, vote: str) -> Review:
    """
    Record a helpful / not-helpful vote.

    Repeating the same vote withdraws it; voting the other way switches it.
    Counters never drop below zero.
    """
    with transaction.atomic():
        try:
            review = Review.objects.select_for_update().get(pk=review_id)
        except (Review.DoesNotExist, DjangoValidationError, ValueError):
            raise NotFoundError("Review", str(review_id))

        existing = ReviewVote.objects.filter(review=review, user=user).first()

        if existing is None:
            ReviewVote.objects.create(review=review, user=user, vote=vote)
            _bump(review, vote, 1)
        elif existing.vote == vote:
            existing.delete()
            _bump(review, vote, -1)
        else:
            previous = existing.vote
            existing.vote = vote
            existing.save(update_fields=['vote', 'updated_at'])
            _bump(review, vote, 1)
            _bump(review, previous, -1)

        review.save(update_fields=['helpful', 'not_helpful', 'updated_at'])

    logger.info(f"Vote '{vote}' by {user.pk} on review {review.pk}: "
                f"helpful={review.helpful} not_helpful={review.not_helpful}")
    return review


def _bump(review: Review, vote: str, delta: int):
    if vote == Review.VOTE_HELPFUL:
        review.helpful = max(0, review.helpful + delta)
    else:
        review.not_helpful = max(0, review.not_helpful + delta)
