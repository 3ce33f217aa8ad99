from setuptools import setup, find_packages

package_name = 'live_quiz'

setup(
    name='live-quiz-engine',
    version='1.0.0',
    packages=find_packages(exclude=['test', 'test.*']),
    package_data={
        package_name: ['packs/*.yaml', 'packs/*.json'],
    },
    include_package_data=True,
    python_requires='>=3.10',
    install_requires=['pydantic>=2', 'pyyaml'],
    extras_require={
        'test': ['pytest'],
    },
    zip_safe=True,
    maintainer='WolfWhale',
    maintainer_email='wolfwhale@example.com',
    description='Timed live quiz round engine with speed scoring and streak bonuses',
    license='MIT',
)
