# vitrine/functions/scheduler/scheduler.py
from apscheduler.schedulers.background import BackgroundScheduler
from vitrine.functions.payment.payments_expired import cancel_expired_payments


def start_scheduler() -> BackgroundScheduler:
    scheduler = BackgroundScheduler(timezone="UTC")

    # Expira PIX pendentes a cada minuto
    scheduler.add_job(cancel_expired_payments, "interval", minutes=1, id="cancel_expired_payments", replace_existing=True)

    scheduler.start()
    return scheduler
