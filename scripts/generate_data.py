"""
Synthetic Data Generator for the Storefront backend

This script fills the store with realistic dummy data: users, a product
catalog, the default shipping and payment catalogs, address books and
product reviews. Addresses and reviews go through the same services as
the API, so default addresses and product ratings come out consistent.
"""
import os
import sys
import random
from decimal import Decimal

# Add the project root to the path
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

# Setup Django
os.environ.setdefault('DJANGO_SETTINGS_MODULE', 'config.settings.base')

import django
django.setup()

from faker import Faker
from apps.addressbook.models import Address
from apps.addressbook.services import create_address
from apps.payguard.defaults import seed_payment_methods
from apps.shipstream.defaults import seed_shipping_methods
from apps.shopcore.models import User, Product, Review, ReviewVote
from apps.shopcore.services import create_review, vote_on_review

fake = Faker()

CITIES = [
    ('Istanbul', 'Kadikoy'), ('Istanbul', 'Besiktas'), ('Ankara', 'Cankaya'),
    ('Izmir', 'Karsiyaka'), ('Konya', 'Selcuklu'), ('Kayseri', 'Melikgazi'),
    ('Erzurum', 'Yakutiye'), ('Antalya', 'Muratpasa'),
]

REVIEW_TITLES = {
    5: ['Absolutely love it', 'Exceeded expectations', 'Worth every lira'],
    4: ['Very good', 'Happy with it', 'Solid purchase'],
    3: ['Does the job', 'Average', 'Okay for the price'],
    2: ['Disappointing', 'Not as described', 'Expected more'],
    1: ['Would not buy again', 'Broke quickly', 'Poor quality'],
}


def generate_users(count=30):
    """Generate dummy users."""
    print(f"Generating {count} users...")
    users = []

    for _ in range(count):
        user = User.objects.create(
            name=fake.name(),
            email=fake.unique.email(),
            image=f"https://i.pravatar.cc/150?u={fake.uuid4()}",
        )
        users.append(user)

    print(f"Created {len(users)} users")
    return users


def generate_products(count=60):
    """Generate dummy products."""
    print(f"Generating {count} products...")

    product_templates = [
        ('Wireless Headphones', 'electronics', 499.99, 2999.99),
        ('Smart Watch', 'electronics', 1499.99, 4999.99),
        ('Mechanical Keyboard', 'electronics', 799.99, 1999.99),
        ('USB-C Hub', 'electronics', 199.99, 899.99),
        ('Bluetooth Speaker', 'electronics', 299.99, 1499.99),
        ('Running Shoes', 'sports', 499.99, 1999.99),
        ('Yoga Mat', 'sports', 149.99, 599.99),
        ('Cotton T-Shirt', 'clothing', 99.99, 399.99),
        ('Winter Jacket', 'clothing', 799.99, 2999.99),
        ('Coffee Maker', 'home', 299.99, 1999.99),
        ('Air Fryer', 'home', 999.99, 2999.99),
        ('Board Game', 'toys', 149.99, 599.99),
    ]

    products = []

    for template in product_templates:
        name_base, category, min_price, max_price = template
        # Create variations
        for _ in range(count // len(product_templates) + 1):
            if len(products) >= count:
                break

            variation = random.choice(['Pro', 'Lite', 'Plus', 'Max', 'Mini', 'Ultra', ''])
            full_name = f"{name_base} {variation}".strip()

            product = Product.objects.create(
                name=full_name,
                category=category,
                price=Decimal(str(round(random.uniform(min_price, max_price), 2))),
                description=fake.text(max_nb_chars=180),
                image=f"https://picsum.photos/seed/{fake.uuid4()}/600/600.jpg",
                stock=random.randint(0, 200),
            )
            products.append(product)

    print(f"Created {len(products)} products")
    return products


def generate_addresses(users):
    """Generate one to three addresses per user."""
    print("Generating addresses...")
    addresses = []

    for user in users:
        for title in random.sample(['Home', 'Work', 'Parents', 'Summer House'], random.randint(1, 3)):
            city, district = random.choice(CITIES)
            first_name, last_name = user.name.split(' ', 1) if ' ' in user.name else (user.name, user.name)
            address = create_address(user, {
                'type': random.choice([Address.TYPE_BOTH, Address.TYPE_BOTH, Address.TYPE_SHIPPING, Address.TYPE_BILLING]),
                'title': title,
                'first_name': first_name[:50],
                'last_name': last_name[:50],
                'company': fake.company()[:100] if title == 'Work' else '',
                'phone': fake.numerify('05## ### ####'),
                'address_line1': fake.street_address()[:200],
                'city': city,
                'state': district,
                'postal_code': fake.numerify('#####'),
                'is_default': random.random() < 0.3,
            })
            addresses.append(address)

    print(f"Created {len(addresses)} addresses")
    return addresses


def generate_reviews(users, products, count=150):
    """Generate reviews, one per (user, product) pair at most."""
    print(f"Generating {count} reviews...")
    reviews = []
    pairs = set()

    attempts = 0
    while len(reviews) < count and attempts < count * 5:
        attempts += 1
        user = random.choice(users)
        product = random.choice(products)
        if (user.pk, product.pk) in pairs:
            continue
        pairs.add((user.pk, product.pk))

        rating = random.choices([5, 4, 3, 2, 1], weights=[40, 30, 15, 10, 5])[0]
        review = create_review(user, {
            'product_id': product.pk,
            'rating': rating,
            'title': random.choice(REVIEW_TITLES[rating]),
            'comment': fake.paragraph(nb_sentences=3)[:1000],
            'pros': [fake.sentence(nb_words=4)] if rating >= 3 else [],
            'cons': [fake.sentence(nb_words=4)] if rating <= 3 else [],
        })
        reviews.append(review)

    print(f"Created {len(reviews)} reviews")
    return reviews


def generate_votes(users, reviews):
    """Generate helpful / not-helpful votes on reviews."""
    print("Generating review votes...")
    votes = 0

    for review in reviews:
        for voter in random.sample(users, random.randint(0, 4)):
            if voter.pk == review.user_id:
                continue
            vote = random.choices([Review.VOTE_HELPFUL, Review.VOTE_NOT_HELPFUL], weights=[75, 25])[0]
            vote_on_review(voter, review.pk, vote)
            votes += 1

    print(f"Created {votes} votes")
    return votes


def clear_all_data():
    """Clear all existing data."""
    print("Clearing existing data...")

    ReviewVote.objects.all().delete()
    Review.objects.all().delete()
    Address.objects.all().delete()
    Product.objects.all().delete()
    User.objects.all().delete()

    print("All data cleared")


def main():
    """Main function to generate all data."""
    print("\n" + "="*60)
    print("Storefront Synthetic Data Generator")
    print("="*60 + "\n")

    # Clear existing data
    clear_all_data()

    # Static catalogs are replaced wholesale
    shipping_methods = seed_shipping_methods()
    payment_methods = seed_payment_methods()

    # Generate data in order of dependencies
    users = generate_users(30)
    products = generate_products(60)
    addresses = generate_addresses(users)
    reviews = generate_reviews(users, products, 150)
    votes = generate_votes(users, reviews)

    print("\n" + "="*60)
    print("Data Generation Complete!")
    print("="*60)
    print("\nSummary:")
    print(f"  - Shipping Methods: {len(shipping_methods)}")
    print(f"  - Payment Methods: {len(payment_methods)}")
    print(f"  - Users: {len(users)}")
    print(f"  - Products: {len(products)}")
    print(f"  - Addresses: {len(addresses)}")
    print(f"  - Reviews: {len(reviews)}")
    print(f"  - Votes: {votes}")
    print()


if __name__ == '__main__':
    main()
