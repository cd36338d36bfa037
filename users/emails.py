import logging
from django.conf import settings
from django.core.mail import send_mail

logger = logging.getLogger('incampus')


def send_otp_email(user, otp):
    """
    Deliver a verification code through the configured email backend.
    Returns False when delivery failed; the code stays valid and can be resent.
    """
    subject = 'Your InCampus verification code'
    message = (
        f"Hi {user.display_name or user.username},\n\n"
        f"Your verification code is {otp}. "
        f"It expires in {settings.OTP_EXPIRY_MINUTES} minutes.\n"
    )
    try:
        send_mail(subject, message, settings.DEFAULT_FROM_EMAIL, [user.email])
    except Exception as e:
        logger.error(f"Failed to send OTP email to {user.email}: {str(e)}")
        return False
    logger.info(f"OTP email sent to {user.email}")
    return True
