from django.core.validators import RegexValidator

# Username validator
username_validator = RegexValidator(
    regex=r'^[\w.@+-]+$',
    message=(
        'Enter a valid username. This value may contain only letters, '
        'numbers, and @/./+/-/_ characters.'
    ),
)

# University ID validator, e.g. BWU/BCA/23/734
university_id_validator = RegexValidator(
    regex=r'^[A-Za-z0-9][A-Za-z0-9/_-]*$',
    message=(
        'Enter a valid university ID. This value may contain only letters, '
        'numbers, and / - _ characters.'
    ),
)
