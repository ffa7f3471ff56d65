"""
Management command to settle pending contributions from Mercado Pago.

Webhooks can be lost or arrive while the service is down. This command
asks the processor about every pending contribution and bulk payment
older than a cutoff and settles the ones that have a final outcome.

Usage:
    python manage.py reconcile_contributions
    python manage.py reconcile_contributions --older-than-minutes 60 --dry-run
"""

from datetime import timedelta

from django.core.management.base import BaseCommand
from django.utils import timezone

from apps.payments.models import BulkPayment, PaymentContribution, ContributionStatus
from apps.payments.services import reconcile_bulk_payment, reconcile_contribution, PaymentProcessorError


class Command(BaseCommand):
    help = 'Settle pending contributions and bulk payments from the processor records'

    def add_arguments(self, parser):
        parser.add_argument(
            '--older-than-minutes',
            type=int,
            default=10,
            help='Only check contributions pending for at least this long',
        )
        parser.add_argument(
            '--limit',
            type=int,
            default=200,
            help='Maximum number of contributions to check',
        )
        parser.add_argument(
            '--dry-run',
            action='store_true',
            help='List pending contributions without contacting the processor',
        )

    def handle(self, *args, **options):
        cutoff = timezone.now() - timedelta(minutes=options['older_than_minutes'])
        limit = options['limit']

        contributions = list(
            PaymentContribution.objects
            .filter(status=ContributionStatus.PENDING, created_at__lte=cutoff)
            .select_related('user')
            .order_by('created_at')[:limit]
        )
        bulk_payments = list(
            BulkPayment.objects
            .filter(status=ContributionStatus.PENDING, created_at__lte=cutoff)
            .select_related('user')
            .order_by('created_at')[:limit]
        )

        if not contributions and not bulk_payments:
            self.stdout.write(self.style.SUCCESS('No pending contributions to reconcile.'))
            return

        if contributions:
            self.stdout.write(f'\nFound {len(contributions)} pending contribution(s):\n')
        if bulk_payments:
            self.stdout.write(f'\nFound {len(bulk_payments)} pending bulk payment(s):\n')

        if options['dry_run']:
            for contribution in contributions:
                self.stdout.write(
                    f'  - {contribution.external_reference} | {contribution.amount_clp} CLP | {contribution.user.email}'
                )
            for bulk_payment in bulk_payments:
                self.stdout.write(
                    f'  - {bulk_payment.external_reference} | {bulk_payment.total_amount_clp} CLP | {bulk_payment.user.email}'
                )
            self.stdout.write(self.style.WARNING('\n--dry-run mode: No changes made.'))
            return

        failed = 0
        settled = {'contribution': 0, 'bulk': 0}
        work = (
            [('contribution', contribution, reconcile_contribution, 'contribution') for contribution in contributions]
            + [('bulk', bulk, reconcile_bulk_payment, 'bulk_payment') for bulk in bulk_payments]
        )
        for kind, payment, reconcile, argument in work:
            try:
                result = reconcile(**{argument: payment})
            except PaymentProcessorError as e:
                failed += 1
                self.stderr.write(f'  ! {payment.external_reference}: {e}')
                continue

            if result is None:
                self.stdout.write(f'  - {payment.external_reference}: still pending')
            else:
                settled[kind] += 1
                self.stdout.write(f'  - {payment.external_reference}: {result.status}')

        self.stdout.write(
            self.style.SUCCESS(
                f"\nSettled {settled['contribution']} contribution(s), "
                f"{settled['bulk']} bulk payment(s), {failed} processor error(s)."
            )
        )
