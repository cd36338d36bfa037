from datetime import timedelta
from django.core import mail
from django.core.exceptions import ValidationError
from django.test import SimpleTestCase, TestCase
from django.urls import reverse
from django.utils import timezone
from rest_framework.test import APIClient, APITestCase
from rest_framework import status
from .identifiers import decompose_university_id
from .models import User


class UniversityIdTests(SimpleTestCase):
    def test_decomposes_course_and_batch(self):
        parts = decompose_university_id('BWU/BCA/23/734')
        self.assertEqual(parts.course, 'BCA')
        self.assertEqual(parts.batch, '2023')

    def test_malformed_identifier_yields_empty_parts(self):
        self.assertEqual(decompose_university_id('malformed'), ('', ''))

    def test_missing_identifier_yields_empty_parts(self):
        self.assertEqual(decompose_university_id(None), ('', ''))
        self.assertEqual(decompose_university_id(''), ('', ''))

    def test_identifier_without_roll_number(self):
        self.assertEqual(decompose_university_id('BWU/BCA/23'), ('BCA', '2023'))

    def test_institution_only(self):
        self.assertEqual(decompose_university_id('BWU'), ('', ''))

    def test_course_without_year(self):
        parts = decompose_university_id('BWU/CSE')
        self.assertEqual(parts.course, 'CSE')
        self.assertEqual(parts.batch, '')

    def test_non_numeric_year_is_ignored(self):
        parts = decompose_university_id('BWU/CSE/XY/10')
        self.assertEqual(parts.course, 'CSE')
        self.assertEqual(parts.batch, '')

    def test_tokens_are_trimmed(self):
        parts = decompose_university_id('BWU/ BBA /21/5')
        self.assertEqual(parts, ('BBA', '2021'))


class UserModelTests(TestCase):
    def setUp(self):
        self.user = User.objects.create_user(
            username='asha',
            email='Asha@Example.com',
            password='password123',
            university_id='BWU/BCA/23/734',
        )

    def test_email_is_lowercased(self):
        self.assertEqual(self.user.email, 'asha@example.com')

    def test_course_and_batch_derive_from_university_id(self):
        self.assertEqual(self.user.course, 'BCA')
        self.assertEqual(self.user.batch, '2023')

    def test_display_name_is_empty_without_name(self):
        self.assertEqual(self.user.display_name, '')
        self.user.name = '  Asha Roy '
        self.assertEqual(self.user.display_name, 'Asha Roy')

    def test_generated_otp_verifies(self):
        otp = self.user.generate_otp()
        self.assertEqual(len(otp), 6)
        self.assertTrue(otp.isdigit())
        self.assertTrue(self.user.verify_otp(otp))
        self.assertFalse(self.user.verify_otp('not-it'))

    def test_expired_otp_fails(self):
        otp = self.user.generate_otp()
        self.user.otp_expires_at = timezone.now() - timedelta(seconds=1)
        self.assertFalse(self.user.verify_otp(otp))

    def test_full_clean_logs_and_raises_on_invalid_university_id(self):
        self.user.university_id = 'BWU BCA 23!'
        with self.assertLogs('incampus', level='WARNING') as logs:
            with self.assertRaises(ValidationError) as cm:
                self.user.full_clean()
        self.assertIn('university_id', cm.exception.message_dict)
        self.assertIn('Validation error on User', logs.output[0])

    def test_full_clean_accepts_valid_profile(self):
        self.user.full_clean()

    def test_mark_verified_clears_otp(self):
        self.user.generate_otp()
        self.user.mark_verified()
        self.user.refresh_from_db()
        self.assertTrue(self.user.is_verified)
        self.assertIsNone(self.user.otp_code)


class RegistrationTests(APITestCase):
    def setUp(self):
        self.client = APIClient()
        self.register_url = reverse('register')
        self.verify_url = reverse('verify_otp')
        self.resend_url = reverse('resend_otp')
        self.login_url = reverse('token_obtain_pair')
        self.payload = {
            'email': 'new.student@example.com',
            'password': 'Campus-Pass-2023',
            'password_confirm': 'Campus-Pass-2023',
            'university_id': 'BWU/BCA/23/101',
            'name': 'New Student',
        }

    def test_register_creates_unverified_user_and_sends_otp(self):
        """Registration stores the user and emails a verification code"""
        response = self.client.post(self.register_url, self.payload)
        self.assertEqual(response.status_code, status.HTTP_201_CREATED)
        self.assertEqual(response.data['status'], 'success')

        user = User.objects.get(email='new.student@example.com')
        self.assertFalse(user.is_verified)
        self.assertEqual(user.username, 'new.student')
        self.assertEqual(len(mail.outbox), 1)
        self.assertIn(user.otp_code, mail.outbox[0].body)

    def test_register_password_mismatch(self):
        self.payload['password_confirm'] = 'something-else-1'
        response = self.client.post(self.register_url, self.payload)
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertEqual(response.data['status'], 'error')
        self.assertIn("Password fields don't match", response.data['message'])

    def test_register_duplicate_email(self):
        User.objects.create_user(username='taken', email='new.student@example.com', password='password123')
        response = self.client.post(self.register_url, self.payload)
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertIn('email', response.data['message'])

    def test_register_requires_university_id(self):
        del self.payload['university_id']
        response = self.client.post(self.register_url, self.payload)
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertIn('university_id', response.data['message'])

    def test_verify_otp_returns_tokens(self):
        self.client.post(self.register_url, self.payload)
        user = User.objects.get(email='new.student@example.com')

        response = self.client.post(self.verify_url, {'email': user.email, 'otp': user.otp_code})
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertIn('access', response.data['data']['tokens'])
        user.refresh_from_db()
        self.assertTrue(user.is_verified)

    def test_verify_wrong_otp(self):
        self.client.post(self.register_url, self.payload)
        response = self.client.post(self.verify_url, {'email': self.payload['email'], 'otp': '000000x'})
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertEqual(response.data['message'], 'Invalid or expired OTP')

    def test_verify_unknown_email(self):
        response = self.client.post(self.verify_url, {'email': 'ghost@example.com', 'otp': '123456'})
        self.assertEqual(response.status_code, status.HTTP_404_NOT_FOUND)

    def test_resend_otp_issues_new_code(self):
        self.client.post(self.register_url, self.payload)
        response = self.client.post(self.resend_url, {'email': self.payload['email']})
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(len(mail.outbox), 2)

    def test_resend_otp_unknown_email_does_not_leak(self):
        response = self.client.post(self.resend_url, {'email': 'ghost@example.com'})
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(len(mail.outbox), 0)

    def test_login_requires_verification(self):
        self.client.post(self.register_url, self.payload)
        response = self.client.post(self.login_url, {
            'email': self.payload['email'], 'password': self.payload['password']
        })
        self.assertEqual(response.status_code, status.HTTP_401_UNAUTHORIZED)
        self.assertEqual(response.data['message'], 'Please verify your email first')

    def test_login_verified_user(self):
        user = User.objects.create_user(
            username='verified', email='verified@example.com', password='password123', is_verified=True
        )
        response = self.client.post(self.login_url, {'email': user.email, 'password': 'password123'})
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertIn('access', response.data)
        self.assertEqual(response.data['user']['id'], user.id)


class UserProfileTests(APITestCase):
    def setUp(self):
        self.user = User.objects.create_user(
            username='asha', email='asha@example.com', password='password123',
            name='Asha Roy', university_id='BWU/BCA/23/734', is_verified=True,
        )
        self.other = User.objects.create_user(
            username='ravi', email='ravi@example.com', password='password123',
            name='Ravi Sen', university_id='BWU/CSE/22/12', role='faculty',
        )
        self.client = APIClient()
        self.client.force_authenticate(user=self.user)
        self.me_url = reverse('user-me')
        self.update_url = reverse('user-update-profile')
        self.search_url = reverse('user-search')

    def test_me_returns_derived_fields(self):
        response = self.client.get(self.me_url)
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        data = response.data['data']['user']
        self.assertEqual(data['course'], 'BCA')
        self.assertEqual(data['batch'], '2023')

    def test_update_profile(self):
        response = self.client.patch(self.update_url, {'bio': 'Hello', 'role': 'faculty'})
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.user.refresh_from_db()
        self.assertEqual(self.user.bio, 'Hello')
        self.assertEqual(self.user.role, 'faculty')

    def test_cannot_self_assign_admin_role(self):
        response = self.client.patch(self.update_url, {'role': 'admin'})
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.user.refresh_from_db()
        self.assertEqual(self.user.role, 'student')

    def test_update_to_taken_university_id(self):
        response = self.client.patch(self.update_url, {'university_id': 'BWU/CSE/22/12'})
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)

    def test_search_matches_university_id(self):
        response = self.client.get(self.search_url, {'q': 'CSE'})
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        ids = [u['id'] for u in response.data['data']['users']]
        self.assertEqual(ids, [self.other.id])

    def test_search_requires_query(self):
        response = self.client.get(self.search_url)
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertEqual(response.data, {'status': 'error', 'message': 'Search query is required'})

    def test_unauthenticated_access(self):
        self.client.force_authenticate(user=None)
        response = self.client.get(self.me_url)
        self.assertEqual(response.status_code, status.HTTP_401_UNAUTHORIZED)
        self.assertEqual(response.data['status'], 'error')
